import os
from dataclasses import dataclass, field
from typing import List, Optional

import yaml
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from dots_tangle.errors import ConfigError


@dataclass
class TangleConfig:
    file: str = "init.org"
    logfile: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    interactive: bool = False
    compile: bool = False
    cd: Optional[str] = None
    verbose: bool = False
    prune: bool = False
    emacs: str = "emacs"
    outputExt: str = ".el"
    compileExts: List[str] = field(default_factory=lambda: [".el"])
    compiledExt: str = ".elc"
    ignoreMarker: str = "."
    stateDir: str = "~/.local/state/dots-tangle"
    interval: float = 0.1


@dataclass
class CleanConfig:
    dir: str = "~/.emacs.d"
    gitDir: Optional[str] = "${oc.env:DOTFILES_REPO_PATH,null}"
    workTree: str = "~"
    keep: List[str] = field(default_factory=lambda: ["etc/*.org"])
    exclude: List[str] = field(default_factory=list)
    jobs: int = 3
    dryRun: bool = False
    yes: bool = False
    customFile: str = "etc/custom.el"
    verbose: bool = False


def loadConfig(configPath=None, overrides=None, schema=TangleConfig):
    """Build the run configuration: defaults, then the YAML file, then CLI overrides.

    `overrides` holds only the flags the operator actually passed, so unset
    flags never clobber values from the config file.
    """
    conf = OmegaConf.structured(schema)
    try:
        if configPath:
            if not os.path.isfile(configPath):
                raise ConfigError(f"Config file '{configPath}' does not exist.")
            conf = OmegaConf.merge(conf, OmegaConf.load(configPath))
        if overrides:
            conf = OmegaConf.merge(conf, OmegaConf.create(overrides))
    except (OmegaConfBaseException, yaml.YAMLError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
    return conf


def compiledSibling(config, path):
    return os.path.splitext(path)[0] + config.compiledExt


def defaultCompiledTarget(config, source):
    return os.path.splitext(source)[0] + config.outputExt


def isCompilable(config, path):
    return os.path.splitext(path)[1] in config.compileExts


def isIgnored(config, path):
    return bool(config.ignoreMarker) and os.path.basename(path).startswith(config.ignoreMarker)
