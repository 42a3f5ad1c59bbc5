import re
from dataclasses import dataclass

from dots_tangle.errors import DiscoveryError

DRIVE_PREFIX = re.compile(r"[A-Za-z]:[\\/]")


@dataclass(frozen=True)
class TangleTarget:
    sourcePath: str
    destPath: str


def parseRecord(line):
    # the separator is the first ':' after any drive prefix on the source ('C:/', 'C:\')
    start = 2 if DRIVE_PREFIX.match(line) else 0
    sep = line.find(":", start)
    if sep <= 0 or sep == len(line) - 1:
        raise DiscoveryError(f"Malformed tangle target record: '{line}'")
    return TangleTarget(line[:sep], line[sep + 1:])


def uniqueTargets(targets):
    """Yield targets keyed by destination; the first source claiming a destination wins."""
    seenDests = set()
    for target in targets:
        if target.destPath in seenDests:
            continue
        seenDests.add(target.destPath)
        yield target


def listTargets(engine, sourceFile, sink):
    records = engine.listTargets(sourceFile, sink)
    parsed = (parseRecord(line.strip()) for line in records if line.strip())
    yield from uniqueTargets(parsed)
