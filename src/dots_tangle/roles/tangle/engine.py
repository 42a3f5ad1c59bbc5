import subprocess
from abc import ABC, abstractmethod

from dots_tangle.errors import CompileError, DiscoveryError, TangleError


# Mirrors org-babel's own destination rules without writing anything. The
# light lookup only filters `:tangle no` blocks; names come from fully
# evaluated header args, so Lisp forms in `:tangle` resolve like a real tangle.
LIST_TARGETS_LISP = """
(progn
  (require 'org)
  (require 'ob-tangle)
  (dolist (file command-line-args-left)
    (let ((source (expand-file-name file)))
      (org-babel-map-src-blocks source
        (let ((cheap (cdr (assq :tangle (nth 2 (org-babel-get-src-block-info 'light))))))
          (unless (or (null cheap) (equal cheap "no"))
            (let* ((info (org-babel-get-src-block-info))
                   (block-lang (nth 0 info))
                   (tangle (cdr (assq :tangle (nth 2 info)))))
              (when (and (stringp tangle) (not (string= tangle "no")))
                (let* ((ext (or (cdr (assoc block-lang org-babel-tangle-lang-exts)) block-lang))
                       (dest (if (fboundp 'org-babel-effective-tangled-filename)
                                 (org-babel-effective-tangled-filename source block-lang tangle)
                               (if (string= tangle "yes")
                                   (concat (file-name-sans-extension source) "." ext)
                                 tangle))))
                  (when dest
                    (princ (format "%s:%s\\n" source
                                   (expand-file-name dest (file-name-directory source)))))))))))))
  (setq command-line-args-left nil))
"""

TANGLE_LISP = """
(progn
  (require 'org)
  (require 'ob-tangle)
  (setq org-confirm-babel-evaluate nil)
  (dolist (file command-line-args-left)
    (org-babel-tangle-file (expand-file-name file)))
  (setq command-line-args-left nil))
"""


class LiterateEngine(ABC):
    """What the tangle run needs from a literate-programming engine."""

    @abstractmethod
    def listTargets(self, source, sink):
        """Return the raw `source:dest` records for `source`, writing nothing."""

    @abstractmethod
    def tangle(self, files, sink):
        pass

    @abstractmethod
    def compile(self, files, sink):
        pass


def streamCommand(command, sink, cwd=None):
    """Run `command`, handing each output line to `sink`. Returns the exit code."""
    proc = subprocess.Popen(
        command,
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    )
    with proc:
        for line in proc.stdout:
            sink(line.rstrip("\n"))
    return proc.returncode


class EmacsEngine(LiterateEngine):
    def __init__(self, emacs="emacs"):
        self.emacs = emacs

    def _batch(self, *args):
        return [self.emacs, "-Q", "--batch", *args]

    def listTargets(self, source, sink):
        command = self._batch("--eval", LIST_TARGETS_LISP, source)
        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except OSError as e:
            raise DiscoveryError(f"Could not run '{self.emacs}': {e}") from e
        for line in result.stderr.splitlines():
            sink(line)
        if result.returncode != 0:
            raise DiscoveryError(f"Failed to list tangle targets of '{source}' (exit code {result.returncode}).")
        return result.stdout.splitlines()

    def tangle(self, files, sink):
        command = self._batch("--eval", TANGLE_LISP, *files)
        try:
            returnCode = streamCommand(command, sink)
        except OSError as e:
            raise TangleError(f"Could not run '{self.emacs}': {e}") from e
        return returnCode == 0

    def compile(self, files, sink):
        command = self._batch("-L", ".", "-f", "batch-byte-compile", *files)
        try:
            returnCode = streamCommand(command, sink)
        except OSError as e:
            raise CompileError(f"Could not run '{self.emacs}': {e}") from e
        return returnCode == 0
