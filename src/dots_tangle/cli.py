import argparse
import os
import sys

from dots_tangle.config import CleanConfig, TangleConfig, loadConfig
from dots_tangle.errors import ConfigError, TangleToolError
from dots_tangle.explanations.tangle.tangle import explainTopics, renderExplanation
from dots_tangle.roles.clean.clean import runClean
from dots_tangle.roles.tangle.engine import EmacsEngine
from dots_tangle.roles.tangle.tangle import runTangle
from dots_tangle.ui.indicator import Indicator
from dots_tangle.ui.logs import setupLogging


def buildParser():
    p = argparse.ArgumentParser(
        prog="dots-tangle",
        description="Tangle a literate org configuration, only regenerating stale targets.",
        argument_default=argparse.SUPPRESS,
    )
    p.add_argument("-f", "--file", help="Literate source file (default: init.org)")
    p.add_argument("-l", "--logfile", metavar="FILE", help="Write log output to FILE, or '-' for the terminal")
    p.add_argument("-d", "--dependency", dest="dependencies", action="append", metavar="FILE",
                   help="File whose changes force a full tangle (repeatable)")
    p.add_argument("-i", "--interactive", action="store_true", help="Show a progress spinner")
    p.add_argument("-c", "--compile", action="store_true", help="Byte-compile stale Emacs Lisp targets")
    p.add_argument("--cd", metavar="DIR", help="Change to DIR before doing anything")
    p.add_argument("-v", "--verbose", action="store_true", help="Log discovered targets and freshness decisions")
    p.add_argument("--prune", action="store_true", help="Remove outputs the source no longer tangles")
    p.add_argument("--emacs", metavar="PATH", help="Emacs executable (default: emacs)")
    p.add_argument("--config", metavar="FILE", help="YAML file with default options")
    p.add_argument("--explain", choices=explainTopics(), help="Explain a concept and exit")
    return p


def buildCleanParser():
    p = argparse.ArgumentParser(
        prog="dots-clean",
        description="Move files that are not part of your dotfiles out of a configuration directory.",
        argument_default=argparse.SUPPRESS,
    )
    p.add_argument("--dir", help="Directory to clean (default: ~/.emacs.d)")
    p.add_argument("--git-dir", dest="gitDir", help="Dotfiles bare repo (default: $DOTFILES_REPO_PATH)")
    p.add_argument("--work-tree", dest="workTree", help="Work tree of the dotfiles repo (default: ~)")
    p.add_argument("--keep", action="append", metavar="GLOB", help="Keep files matching GLOB (repeatable, replaces the default)")
    p.add_argument("--exclude", action="append", metavar="GLOB", help="Also keep files matching GLOB (repeatable)")
    p.add_argument("-j", "--jobs", type=int, help="Trash processes to run at once (default: 3)")
    p.add_argument("-n", "--dry-run", dest="dryRun", action="store_true", help="Only list what would be removed")
    p.add_argument("-y", "--yes", action="store_true", help="Do not ask before editing custom.el")
    p.add_argument("-v", "--verbose", action="store_true")
    p.add_argument("--config", metavar="FILE", help="YAML file with default options")
    return p


def main(argv=None):
    args = vars(buildParser().parse_args(argv))
    configPath = args.pop("config", None)
    topic = args.pop("explain", None)
    if topic:
        print(renderExplanation(topic))
        return 0

    try:
        config = loadConfig(configPath, args, schema=TangleConfig)
        if config.cd:
            try:
                os.chdir(os.path.expanduser(config.cd))
            except OSError as e:
                raise ConfigError(f"Cannot change directory to '{config.cd}': {e}") from e
        indicator = Indicator(animate=config.interactive and sys.stdout.isatty(), interval=config.interval)
        setupLogging(config.logfile, config.verbose, indicator)
    except TangleToolError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    with indicator:
        try:
            runTangle(config, EmacsEngine(config.emacs), indicator)
        except TangleToolError as e:
            indicator.failed(e.message)
            return 1
    return 0


def clean_main(argv=None):
    args = vars(buildCleanParser().parse_args(argv))
    configPath = args.pop("config", None)
    try:
        config = loadConfig(configPath, args, schema=CleanConfig)
    except TangleToolError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    indicator = Indicator()
    setupLogging(None, config.verbose, indicator)
    try:
        runClean(config, indicator)
    except TangleToolError as e:
        indicator.failed(e.message)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
