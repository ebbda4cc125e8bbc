"""
Script: ami_tools package
What: Holds the Python helpers that pick source AMIs for image builds.
Doing: Groups the CLI entrypoints, the AMI selection rules, and shared utility code in one importable package.
Why: Keeps the selection heuristics readable and testable instead of buried in a shell pipeline.
Goal: Provide a clear, maintainable home for source-image lookup logic.
"""
