"""Package entry point for ``python -m hanzi_sync``.

WHY: Users run the aligner as ``python -m hanzi_sync article.txt
--boundaries events.json``. Python's ``-m`` flag looks for
``__main__.py`` inside the package and executes it.

HOW: Delegates to the CLI's main() function.
"""

from hanzi_sync.cli import main

if __name__ == "__main__":
    main()
