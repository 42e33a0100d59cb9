#!/usr/bin/env python
"""
Command line entry point for the Healthcare Hub back end.

Besides Django's built-in commands this exposes the careops commands:
``populate_data``, ``ensure_test_users``, ``sync_resource_status`` and
``refresh_caches``.
"""
import os
import sys


def main() -> None:
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'healthhub.settings')
    try:
        from django.core.management import execute_from_command_line  # type: ignore
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Install the project first (pip install -e .) "
            "or activate the virtual environment it was installed into."
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
