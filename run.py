#!/usr/bin/env python3
"""Backup runner, suitable for cron"""
from clpbackup.cli import main

if __name__ == '__main__':
    main()
