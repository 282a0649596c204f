#!/usr/bin/env python3
"""
Quick status check for one AI analysis, using the stored session.

Usage:
    python scripts/check_status.py 9
"""
import json
import sys

import requests

from dental_portal.core.config import get_settings
from dental_portal.core.session import TokenStore, TOKEN_KEY


def check_status(analysis_id):
    """Poll one analysis and print its state."""
    settings = get_settings()
    token = TokenStore(settings.session_file).get(TOKEN_KEY)
    if not token:
        print("❌ Not signed in. Run `dental-portal login` first.\n")
        return False

    url = f"{settings.api_url}/api/patient/diagnocat/analyses/{analysis_id}/refresh"
    print(f"🔍 Checking analysis: {analysis_id}\n")
    try:
        response = requests.get(
            url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=settings.request_timeout,
        )
    except requests.exceptions.ConnectionError:
        print("❌ Cannot connect to API. Is it running?\n")
        return False

    if response.status_code != 200:
        print(f"❌ Check failed: {response.status_code}")
        print(response.text)
        return False

    analysis = response.json().get("analysis", {})
    print("📊 Analysis Status:")
    print("━" * 38)
    print(f"  ID: {analysis.get('id')}")
    print(f"  Status: {analysis.get('status')}")
    print(f"  Complete: {analysis.get('complete')}")
    if analysis.get("error"):
        print(f"  ❌ Error: {analysis['error']}")

    if analysis.get("complete"):
        print("\n🎉 Analysis Complete!")
        if analysis.get("webpage_url"):
            print(f"  🌐 View Report: {analysis['webpage_url']}")
        if analysis.get("pdf_url"):
            print(f"  📄 Download PDF: {analysis['pdf_url']}")
    else:
        print("\n⏳ Still processing...")
    print("━" * 38)

    if "--json" in sys.argv:
        print(json.dumps(analysis, indent=2))
    return True


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/check_status.py <analysis_id> [--json]")
        sys.exit(1)
    sys.exit(0 if check_status(sys.argv[1]) else 1)
