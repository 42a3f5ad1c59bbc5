import logging
import os

from dots_tangle.errors import CompileError, MissingSourceError, TangleError
from dots_tangle.roles.tangle.freshness import resolve, staleDependencies
from dots_tangle.roles.tangle.state import findOrphans, loadApplied, pruneOrphans, recordApplied, stateFileFor
from dots_tangle.roles.tangle.targets import listTargets

logger = logging.getLogger("dots_tangle")


def displayPath(path):
    try:
        return os.path.relpath(path)
    except ValueError:
        return path


def handleDiscovery(engine, indicator, primarySource):
    indicator.doing(f"Listing tangle targets of {displayPath(primarySource)}")
    targets = list(listTargets(engine, primarySource, logger.info))
    for target in targets:
        logger.debug(f"Target: {displayPath(target.sourcePath)} -> {displayPath(target.destPath)}")
    return targets


def handleTangle(engine, indicator, toTangle):
    for source in sorted(toTangle):
        indicator.doing(f"Tangling {displayPath(source)}")
        if not engine.tangle([source], logger.info):
            raise TangleError(f"Failed to tangle '{displayPath(source)}'.")


def handleCompile(engine, indicator, toCompile):
    files = sorted(toCompile)
    indicator.doing(f"Byte-compiling {len(files)} file(s)")
    if not engine.compile(files, logger.info):
        raise CompileError(f"Failed to byte-compile: {', '.join(displayPath(f) for f in files)}")


def runTangle(config, engine, indicator):
    primarySource = os.path.abspath(os.path.expanduser(config.file))
    dependencies = [os.path.abspath(os.path.expanduser(dep)) for dep in config.dependencies]

    indicator.setup(f"Checking {config.file}")
    if not os.path.isfile(primarySource):
        raise MissingSourceError(f"Source file '{config.file}' does not exist.")

    forcedBy = staleDependencies(config, primarySource, dependencies)
    if forcedBy:
        logger.debug(f"{config.file} will be tangled in full, newer dependencies: {', '.join(displayPath(dep) for dep in forcedBy)}")

    targets = handleDiscovery(engine, indicator, primarySource)

    stateFile = stateFileFor(config, primarySource)
    orphans = findOrphans(loadApplied(stateFile), targets)
    for orphan in orphans:
        logger.warning(f"No longer tangled by {config.file}: {displayPath(orphan)}")

    indicator.doing("Checking which targets are stale")
    fresh = resolve(config, primarySource, dependencies, targets, config.compile)
    logger.debug(f"To tangle: {sorted(fresh.toTangle)}")
    logger.debug(f"To compile: {sorted(fresh.toCompile)}")

    compiling = config.compile and bool(fresh.toCompile)
    if fresh.toTangle:
        handleTangle(engine, indicator, fresh.toTangle)
    if compiling:
        handleCompile(engine, indicator, fresh.toCompile)

    recordApplied(stateFile, targets)
    if config.prune and orphans:
        pruneOrphans(config, orphans, logger.info)

    if not fresh.toTangle and not compiling:
        indicator.ok(f"{config.file} is up to date.")
    else:
        indicator.done(f"Tangled {len(fresh.toTangle)} file(s), compiled {len(fresh.toCompile) if compiling else 0} file(s).")
    return fresh
