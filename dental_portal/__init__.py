"""
Dental Portal client.

Uploads dental CT scans to the patient portal and reconciles the scan and
AI-analysis collections into one view.
"""

__version__ = "1.0.0"
