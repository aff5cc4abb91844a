#!/usr/bin/env python
"""
Run the full back-office test suite
Usage: python Doc/run_tests.py [app ...]   e.g. python Doc/run_tests.py pos inventory
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'core',
    'locations',
    'compliance',
    'recipes',
    'catalog',
    'inventory',
    'pos',
    'accounting',
    'reports',
]

if __name__ == "__main__":
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'backend.config.settings')
    django.setup()
    selected = sys.argv[1:] or APPS
    unknown = [app for app in selected if app not in APPS]
    if unknown:
        sys.exit(f"Unknown apps: {', '.join(unknown)}")
    TestRunner = get_runner(settings)
    test_runner = TestRunner(verbosity=2)
    failures = test_runner.run_tests([f'backend.{app}' for app in selected])
    sys.exit(bool(failures))
