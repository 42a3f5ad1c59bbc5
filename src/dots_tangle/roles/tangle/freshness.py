import logging
import os
from dataclasses import dataclass, field

from dots_tangle.config import compiledSibling, defaultCompiledTarget, isCompilable, isIgnored

logger = logging.getLogger("dots_tangle")


@dataclass
class FreshnessSet:
    toTangle: set = field(default_factory=set)
    toCompile: set = field(default_factory=set)

    def __bool__(self):
        return bool(self.toTangle or self.toCompile)


def isOlder(path, than):
    """True when `path` is missing or strictly older than `than`. Equal mtimes are fresh."""
    if not os.path.exists(path):
        return True
    return os.path.getmtime(path) < os.path.getmtime(than)


def staleDependencies(config, primarySource, dependencies):
    target = defaultCompiledTarget(config, primarySource)
    stale = []
    for dep in dependencies:
        if not os.path.exists(dep):
            logger.debug(f"Dependency '{dep}' does not exist, skipping.")
            continue
        if isOlder(target, dep):
            stale.append(dep)
    return stale


def resolve(config, primarySource, dependencies, targets, compileRequested):
    """Work out which sources need tangling and which outputs need compiling.

    `targets` is consumed in full so every compilable destination lands in
    the collapse set, even when a dependency has already forced the root.
    """
    fresh = FreshnessSet()
    allCompile = set()

    forcedBy = staleDependencies(config, primarySource, dependencies)
    if forcedBy:
        logger.debug(f"Dependencies newer than compiled target: {', '.join(forcedBy)}")
        fresh.toTangle.add(primarySource)
        fresh.toCompile.add(defaultCompiledTarget(config, primarySource))

    for target in targets:
        src, dest = target.sourcePath, target.destPath
        compilable = isCompilable(config, dest)
        if compilable:
            allCompile.add(dest)
        if forcedBy:
            continue

        if isOlder(dest, src):
            logger.debug(f"Stale: '{dest}' is older than '{src}'.")
            fresh.toTangle.add(src)
            if compileRequested and compilable:
                fresh.toCompile.add(dest)
        elif (compileRequested and compilable and not isIgnored(config, dest)
              and isOlder(compiledSibling(config, dest), dest)):
            logger.debug(f"Stale compiled output for '{dest}'.")
            fresh.toCompile.add(dest)

    if primarySource in fresh.toTangle:
        fresh.toTangle = {primarySource}
        fresh.toCompile = set(allCompile)
    return fresh
