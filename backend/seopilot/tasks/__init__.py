"""
Background Tasks Package

- scan_tasks: repository scans
- impact_tasks: impact measurement of tracked changes
"""

from seopilot.tasks.scan_tasks import *
from seopilot.tasks.impact_tasks import *
