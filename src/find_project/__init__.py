"""
find-project - pick a project directory with a fuzzy finder and open it
in a tmux session named after the project.
"""

__version__ = "0.1.0"
