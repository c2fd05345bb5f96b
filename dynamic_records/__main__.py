"""
Entry point for ``python -m dynamic_records``.
"""

from .cli import app

if __name__ == "__main__":
    app(prog_name="dynamic-records")
