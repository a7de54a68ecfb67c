"""Module entrypoint.

Allows:
    python -m sl_hello_goodbye watch --avatar-name "Jane Doe"
"""

from __future__ import annotations

from sl_hello_goodbye.cli import main

if __name__ == "__main__":
    main()
