import os

import pytest

from dots_tangle.config import loadConfig
from dots_tangle.errors import DiscoveryError
from dots_tangle.roles.tangle.engine import LiterateEngine


class FakeEngine(LiterateEngine):
    def __init__(self, records=None, tangleOk=True, compileOk=True, failListing=False):
        self.records = records or []
        self.tangleOk = tangleOk
        self.compileOk = compileOk
        self.failListing = failListing
        self.listed = []
        self.tangled = []
        self.compiled = []

    def listTargets(self, source, sink):
        self.listed.append(source)
        if self.failListing:
            sink("init.org: parse error")
            raise DiscoveryError(f"Failed to list tangle targets of '{source}' (exit code 255).")
        return list(self.records)

    def tangle(self, files, sink):
        self.tangled.append(list(files))
        sink(f"Tangled {len(files)} file(s)")
        return self.tangleOk

    def compile(self, files, sink):
        self.compiled.append(list(files))
        sink(f"Compiling {len(files)} file(s)")
        return self.compileOk


def touch(path, mtime):
    path = str(path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "a"):
        pass
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def config(tmp_path):
    return loadConfig(overrides={'stateDir': str(tmp_path / "state")})


@pytest.fixture
def fakeEngine():
    return FakeEngine
