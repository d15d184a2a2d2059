#!/usr/bin/env python
"""
Test runner script
Usage: python run_tests.py [app ...]
"""
import os
import sys

import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'repairshop.core',
    'repairshop.organizations',
    'repairshop.customers',
    'repairshop.devices',
    'repairshop.services',
    'repairshop.inventory',
    'repairshop.fiscal',
    'repairshop.notifications',
    'repairshop.reports',
]

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'repairshop.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    labels = [f'repairshop.{name}' for name in sys.argv[1:]] or APPS
    failures = test_runner.run_tests(labels)
    sys.exit(bool(failures))
