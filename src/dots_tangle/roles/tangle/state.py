import os

import yaml
from omegaconf import OmegaConf

from dots_tangle.config import compiledSibling, isCompilable


def stateFileFor(config, primarySource):
    sourceName = os.path.splitext(os.path.basename(primarySource))[0]
    return os.path.join(os.path.expanduser(config.stateDir), f"tangle_{sourceName}.yaml")


def loadApplied(stateFile):
    if not os.path.isfile(stateFile):
        return []
    with open(stateFile) as f:
        runDict = yaml.safe_load(f) or {}
    return runDict.get('applied', []) or []


def findOrphans(applied, targets):
    """Destinations recorded by the previous run that nothing declares any more."""
    desiredDests = {target.destPath for target in targets}
    orphans = []
    for item in applied:
        dest = item.get('dest')
        if dest and dest not in desiredDests and dest not in orphans:
            orphans.append(dest)
    return orphans


def recordApplied(stateFile, targets):
    newRun = [{'source': target.sourcePath, 'dest': target.destPath} for target in targets]
    conf = OmegaConf.create({'applied': newRun})
    os.makedirs(os.path.dirname(stateFile), exist_ok=True)
    with open(stateFile, "w") as f:
        f.write(OmegaConf.to_yaml(conf))


def pruneOrphans(config, orphans, log):
    removed = []
    for path in orphans:
        candidates = [path]
        if isCompilable(config, path):
            candidates.append(compiledSibling(config, path))
        for candidate in candidates:
            if os.path.isfile(candidate):
                log(f"Removing orphaned tangle output: {candidate}")
                os.remove(candidate)
                removed.append(candidate)
    return removed
