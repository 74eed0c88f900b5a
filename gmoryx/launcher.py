# gmoryx/launcher.py
# desktop stand-in for the phone screen: map/unmap play resume/pause
import tkinter as tk
from tkinter import scrolledtext

from gmoryx.app.config import load_config
from gmoryx.app.errors import StartupFailure
from gmoryx.app.lifecycle import ServerLifecycle, ServerState


class App:
    def __init__(self, root, lifecycle=None):
        self.root = root
        root.title("GMOryx HTTPD")
        self.lifecycle = lifecycle or ServerLifecycle(config=load_config())
        self.status = tk.Label(root, text="Starting web server...", justify='left')
        self.status.pack(fill='x')
        tk.Button(root, text="Start Server", command=self.start).pack(fill='x')
        tk.Button(root, text="Stop Server", command=self.stop).pack(fill='x')
        self.log = scrolledtext.ScrolledText(root, height=12)
        self.log.pack(fill='both', expand=True)
        root.bind('<Map>', self.on_resume)
        root.bind('<Unmap>', self.on_pause)
        root.protocol('WM_DELETE_WINDOW', self.close)

    def on_resume(self, event):
        # <Map> fires for every child widget too
        if event.widget is self.root:
            self.start()

    def on_pause(self, event):
        if event.widget is self.root:
            self.stop()

    def start(self):
        try:
            shown = self.lifecycle.activate()
        except StartupFailure as e:
            self.status.config(text=f"Web server failed: {e}")
            self.log.insert('end', f'{e}\n')
            return
        if shown is None:
            self.log.insert('end', 'Server already running\n')
            return
        self.status.config(text=f"Web server: {shown}\nPlease access from other machine.")
        self.log.insert('end', f'Started, {shown}\n')
        self.log.see('end')

    def stop(self):
        if self.lifecycle.state is not ServerState.RUNNING:
            self.log.insert('end', 'Server not running\n')
            return
        self.lifecycle.deactivate()
        self.status.config(text="Web server stopped")
        self.log.insert('end', 'Server stopped\n')

    def close(self):
        self.lifecycle.deactivate()
        self.root.destroy()


if __name__ == '__main__':
    root = tk.Tk()
    App(root)
    root.mainloop()
