import itertools
import os
import queue
import re
import sys
import threading
from enum import Enum


class State(Enum):
    SETUP = "setup"
    DOING = "doing"
    FAILED = "failed"
    OK = "ok"
    DONE = "done"


TERMINAL_STATES = {State.FAILED, State.OK, State.DONE}

LABELS = {
    State.SETUP: "setup",
    State.FAILED: "fail",
    State.OK: " ok ",
    State.DONE: "done",
}

SPINNER = "|/-\\"

ANSI_ESCAPE = re.compile(r"\033\[[0-9;]*m")


class PlainStyler():
    def label(self, state, text):
        return text


class AnsiStyler():
    COLORS = {
        State.SETUP: "36",
        State.DOING: "33",
        State.FAILED: "31",
        State.OK: "32",
        State.DONE: "34",
    }

    def label(self, state, text):
        return f"\033[1;{self.COLORS[state]}m{text}\033[0m"


def pickStyler(stream):
    isTty = hasattr(stream, "isatty") and stream.isatty()
    if isTty and "NO_COLOR" not in os.environ and os.environ.get("TERM") != "dumb":
        return AnsiStyler()
    return PlainStyler()


class Indicator():
    """Status line for one run.

    With `animate` set, a single render thread owns the output stream: state
    updates and plain lines are queued to it and it redraws a spinner while
    in DOING. Without it every transition is written as its own line.
    """

    def __init__(self, stream=None, animate=False, interval=0.1, styler=None):
        self.stream = stream or sys.stdout
        self.animate = animate
        self.interval = interval
        self.styler = styler or pickStyler(self.stream)
        self.state = State.SETUP
        self.message = ""
        self._queue = queue.Queue()
        self._thread = None
        self._writeLock = threading.Lock()
        self._drawnWidth = 0

    @property
    def occupiesDisplay(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.animate and self._thread is None:
            self._thread = threading.Thread(target=self._loop, name="indicator", daemon=True)
            self._thread.start()
        return self

    def stop(self, newline=True):
        if self._thread is None:
            return
        self._queue.put(("stop", newline))
        self._thread.join()
        self._thread = None

    def __enter__(self):
        return self.start()

    def __exit__(self, excType, exc, tb):
        self.stop()
        return False

    def update(self, state, message):
        if self.state in TERMINAL_STATES and state is not self.state:
            # FAILED/OK/DONE are final for the run
            return
        self.state = state
        self.message = message
        if self.occupiesDisplay:
            self._queue.put(("state", state, message))
        else:
            self._write(self._line(state, message, None) + "\n")

    def setup(self, message):
        self.update(State.SETUP, message)

    def doing(self, message):
        self.update(State.DOING, message)

    def failed(self, message):
        self.update(State.FAILED, message)

    def ok(self, message):
        self.update(State.OK, message)

    def done(self, message):
        self.update(State.DONE, message)

    def plain(self, text):
        if self.occupiesDisplay:
            self._queue.put(("plain", text))
        else:
            self._write(text + "\n")

    def _line(self, state, message, glyph):
        if state is State.DOING:
            label = glyph or "...."
        else:
            label = LABELS[state]
        return f"[{self.styler.label(state, label.center(4))}] {message}"

    def _write(self, text):
        with self._writeLock:
            self.stream.write(text)
            self.stream.flush()

    def _erase(self):
        if self._drawnWidth:
            self._write("\r" + " " * self._drawnWidth + "\r")
            self._drawnWidth = 0

    def _draw(self, line):
        self._erase()
        self._write(line)
        self._drawnWidth = len(ANSI_ESCAPE.sub("", line))

    def _loop(self):
        glyphs = itertools.cycle(SPINNER)
        state, message = self.state, self.message
        self._draw(self._line(state, message, next(glyphs)))
        while True:
            try:
                item = self._queue.get(timeout=self.interval)
            except queue.Empty:
                if state is State.DOING:
                    self._draw(self._line(state, message, next(glyphs)))
                continue

            kind = item[0]
            if kind == "state":
                state, message = item[1], item[2]
                self._draw(self._line(state, message, next(glyphs)))
            elif kind == "plain":
                self._erase()
                self._write(item[1] + "\n")
                self._draw(self._line(state, message, next(glyphs)))
            elif kind == "stop":
                self._draw(self._line(state, message, None))
                self._drawnWidth = 0
                if item[1]:
                    self._write("\n")
                return
