import yaml


class TangleExplain():
    def explain_tangle(self, detail_level='basic'):
        return {
            'concept': 'Tangling a Literate Configuration',
            'what': 'A literate configuration (like `init.org`) mixes prose with source blocks. "Tangling" extracts those blocks into the real files programs load, such as `init.el` or a shell script.',
            'why': 'To keep the explanation of a configuration next to the configuration itself, while programs still get plain files they understand.',
            'how': 'Emacs is run in batch mode to find every block with a `:tangle` header. Only the sources whose outputs are stale are tangled again, using `org-babel-tangle-file`.',
            'commands': ['emacs --batch', 'org-babel-tangle-file'],
            'files': ['init.org', 'init.el'],
            'examples': [
                {
                    'yaml': """file: init.org
compile: true
dependencies:
  - early-init.el
""",
                }
            ],
            'learn_more': ['Org Manual: Extracting Source Code', 'Literate Programming on Wikipedia']
        }

    def explain_freshness(self, detail_level='basic'):
        """Explains how stale targets are detected"""
        return {
            'concept': 'Freshness Checks',
            'what': 'Before tangling anything, every declared target is compared with its source file by modification time.',
            'why': 'Tangling and byte-compiling a large configuration is slow. Skipping outputs that are already newer than their sources keeps repeated runs fast.',
            'how': 'A target that is missing or strictly older than its source is stale. Equal timestamps count as up to date. A `--dependency` file newer than the default compiled target (`init.el` for `init.org`) forces the whole file to be tangled again.',
            'technical': 'When the primary source itself is stale, tangling it rewrites every target, so the run tangles only that file and compiles every compilable target it declares.'
        }

    def explain_compile(self, detail_level='basic'):
        """Explains the byte-compilation step"""
        return {
            'concept': 'Byte-Compilation (--compile)',
            'what': 'Tangled Emacs Lisp files can be byte-compiled into `.elc` files, which load faster.',
            'why': 'A compiled configuration starts faster, and compiling surfaces warnings early.',
            'how': 'With `--compile`, every stale `.el` target (and every `.el` whose `.elc` is missing or older) is passed to `emacs --batch -f batch-byte-compile`. Files whose names start with `.` such as `.dir-locals.el` are only compiled when they were just tangled, a missing or older `.elc` alone does not trigger it.',
            'equivalent': """# Equivalent of compiling init.el by hand
emacs -Q --batch -L . -f batch-byte-compile init.el
""",
        }

    def explain_state(self, detail_level='basic'):
        """Explains the target tracking feature"""
        return {
            'concept': 'Target Tracking and Pruning',
            'what': 'Each run records the targets declared by the source file in `~/.local/state/dots-tangle/tangle_<name>.yaml`.',
            'why': 'When a block is removed or its `:tangle` path changes, the old output would otherwise stay behind and might still be loaded.',
            'how': 'The next run compares the recorded targets with the declared ones and reports the ones that disappeared. With `--prune` they are deleted together with their compiled files.',
        }

    def explain_clean(self, detail_level='basic'):
        """Explains the dots-clean command"""
        return {
            'concept': 'Cleaning the Configuration Directory',
            'what': '`dots-clean` moves every file in `~/.emacs.d` that is not part of your dotfiles to the trash.',
            'why': 'Packages, caches and old outputs pile up over time. Starting clean makes sure the configuration still works from the dotfiles alone.',
            'how': 'Files tracked by the dotfiles repo (`$DOTFILES_REPO_PATH`), files matching `--keep` (default `etc/*.org`) and files matching `--exclude` are kept. Everything else goes to the trash, empty directories are removed and, after confirmation, `package-selected-packages` is emptied in `etc/custom.el`.',
            'commands': ['git ls-files', 'gio trash', 'trash-put', 'recycle', 'trash'],
            'files': ['~/.emacs.d/', '~/.emacs.d/etc/custom.el'],
        }


def explainTopics():
    return sorted(name[len('explain_'):] for name in dir(TangleExplain) if name.startswith('explain_'))


def renderExplanation(topic, detail_level='basic'):
    method = getattr(TangleExplain(), f"explain_{topic}", None)
    if method is None:
        return None
    return yaml.safe_dump(method(detail_level), sort_keys=False, allow_unicode=True, width=100)
