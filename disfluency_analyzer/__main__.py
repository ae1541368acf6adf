"""Package entry point for ``python -m disfluency_analyzer``.

WHY: Users run the analyzer as ``python -m disfluency_analyzer analyze
transcript.json``. Python's ``-m`` flag looks for ``__main__.py``
inside the package and executes it.

HOW: Delegates to the CLI's main() function.
"""

if __name__ == "__main__":
    from disfluency_analyzer.cli import main
    main()
