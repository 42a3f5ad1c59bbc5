import fnmatch
import logging
import os
import re
import shutil
import subprocess
import sys
from concurrent.futures import ThreadPoolExecutor

from dots_tangle.errors import CleanError

logger = logging.getLogger("dots_tangle")

PACKAGES_PATTERN = re.compile(
    r"(\(package-selected-packages\s*(?:\(quote\s*|')\()([A-Za-z0-9\-:+_.\s]*?)(\))"
)

TRASH_BATCH = 20


def getTrashCommand(platformName=None):
    platformName = platformName or sys.platform
    if platformName.startswith(("win32", "cygwin", "msys")):
        candidates = [["recycle"]]
    elif platformName.startswith("darwin"):
        candidates = [["trash"]]
    elif platformName.startswith(("linux", "freebsd")):
        candidates = [["gio", "trash"], ["trash-put"]]
    else:
        raise CleanError(f"Unable to determine trash command for os: {platformName}")

    for command in candidates:
        if shutil.which(command[0]):
            return command
    names = " or ".join(" ".join(c) for c in candidates)
    raise CleanError(f"No trash command found for {platformName}, install {names}.")


def getTrackedFiles(gitDir, workTree, cleanDir):
    """Paths under `cleanDir`, relative to it, that the dotfiles repo tracks."""
    if not gitDir:
        logger.warning("No dotfiles repo configured (DOTFILES_REPO_PATH), tracked files are not protected.")
        return set()
    command = ["git", f"--git-dir={os.path.expanduser(gitDir)}", f"--work-tree={os.path.expanduser(workTree)}",
               "ls-files", "-z", "."]
    try:
        result = subprocess.run(command, cwd=cleanDir, capture_output=True, text=True)
    except OSError as e:
        raise CleanError(f"Could not run git: {e}") from e
    if result.returncode != 0:
        raise CleanError(f"git ls-files failed: {result.stderr.strip()}")
    return {os.path.normpath(p) for p in result.stdout.split("\0") if p}


def matchesAny(relPath, patterns):
    posixPath = relPath.replace(os.sep, "/")
    return any(fnmatch.fnmatch(posixPath, pattern) for pattern in patterns)


def findCandidates(cleanDir, tracked, keep, exclude):
    candidates = []
    for root, dirs, files in os.walk(cleanDir, topdown=False):
        if ".git" in os.path.relpath(root, cleanDir).split(os.sep):
            continue
        for name in sorted(files):
            relPath = os.path.normpath(os.path.relpath(os.path.join(root, name), cleanDir))
            if relPath in tracked:
                continue
            if matchesAny(relPath, keep) or matchesAny(relPath, exclude):
                continue
            candidates.append(relPath)
    return candidates


def trashFiles(trashCommand, files, cleanDir, jobs):
    batches = [files[i:i + TRASH_BATCH] for i in range(0, len(files), TRASH_BATCH)]

    def trashBatch(batch):
        for path in batch:
            logger.info(f"removing: {path}")
        return subprocess.run(trashCommand + batch, cwd=cleanDir, capture_output=True, text=True)

    with ThreadPoolExecutor(max_workers=max(1, jobs)) as pool:
        results = list(pool.map(trashBatch, batches))
    failed = [r for r in results if r.returncode != 0]
    if failed:
        raise CleanError(f"Trash command failed: {failed[0].stderr.strip()}")


def removeEmptyDirs(cleanDir):
    removed = []
    for root, dirs, files in os.walk(cleanDir, topdown=False):
        if os.path.abspath(root) == os.path.abspath(cleanDir):
            continue
        if not os.listdir(root):
            os.rmdir(root)
            removed.append(root)
    return removed


def findSelectedPackages(content):
    match = PACKAGES_PATTERN.search(content)
    if not match:
        return None, []
    return match, match.group(2).split()


def handleCustomPackages(customFile, skip, ask=input):
    if not os.path.isfile(customFile):
        return []
    with open(customFile) as f:
        content = f.read()
    match, packages = findSelectedPackages(content)
    if not packages:
        return []

    confirm = "y" if skip else ask(f"would you like to erase installed packages from: {customFile} (Y/n) ")
    if confirm.lower() not in ["y", "yes", "", "s", "sim"]:
        return []

    for counter, package in enumerate(packages, start=1):
        print(f"removing package {counter:03d}: {package}")
    content = content[:match.start(2)] + content[match.end(2):]
    with open(customFile, "w") as f:
        f.write(content)
    return packages


def runClean(config, indicator, ask=input):
    cleanDir = os.path.expanduser(config.dir)
    if not os.path.isdir(cleanDir):
        raise CleanError(f"Directory '{cleanDir}' does not exist.")

    indicator.setup(f"Cleaning {cleanDir}")
    tracked = getTrackedFiles(config.gitDir, config.workTree, cleanDir)
    candidates = findCandidates(cleanDir, tracked, list(config.keep), list(config.exclude))

    if config.dryRun:
        for path in candidates:
            indicator.plain(f"would remove: {path}")
        indicator.ok(f"{len(candidates)} file(s) would be removed.")
        return candidates

    if candidates:
        trashCommand = getTrashCommand()
        indicator.doing(f"Moving {len(candidates)} file(s) to the trash")
        trashFiles(trashCommand, candidates, cleanDir, config.jobs)
    for path in removeEmptyDirs(cleanDir):
        logger.debug(f"Removed empty directory: {path}")

    customFile = os.path.join(cleanDir, config.customFile)
    handleCustomPackages(customFile, config.yes, ask)

    indicator.done(f"Removed {len(candidates)} file(s) from {cleanDir}.")
    return candidates
