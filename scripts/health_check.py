#!/usr/bin/env python3
"""
Post-Deployment Health Check Script

Validates that a deployed calculation API answers and computes correctly.

Usage:
    python scripts/health_check.py --url <DEPLOYMENT_URL> --environment <staging|production>

Checks Performed:
    1. /api/health returns 200 OK
    2. /api/calculations/periods computes a known reference simulation
       (one monthly service of 1000 from March 2025 at 25% social charges)

Exit Codes:
    0: All health checks passed
    1: One or more health checks failed
"""

import argparse
import sys
import time
import requests
from typing import Dict, Tuple

# March 2025 must come out as Revenue 1000, Charges 250, Net 750.
REFERENCE_PAYLOAD = {
    "year": 2025,
    "granularity": "month",
    "mode": "distributed",
    "simulations": [{
        "id": "health-check",
        "name": "Health check",
        "isTest": False,
        "services": [{
            "id": 1,
            "name": "Reference service",
            "price": 1000,
            "quantity": 1,
            "frequency": "mois",
            "startDate": "2025-03-01",
            "params": {"socialChargesRate": 25},
        }],
    }],
}
REFERENCE_MONTH = 2
EXPECTED = {"Revenue": 1000.0, "Charges": 250.0, "Net": 750.0}


def check_health_endpoint(url: str, timeout: int = 10) -> Tuple[bool, str]:
    """
    Checks that /api/health answers with {"status": "ok"}.

    Returns:
        Tuple[bool, str]: (success, message)
    """
    full_url = f"{url.rstrip('/')}/api/health"

    try:
        response = requests.get(full_url, timeout=timeout)

        if response.status_code != 200:
            return False, f"✗ /api/health returned {response.status_code}"

        try:
            status = response.json().get('status')
        except ValueError:
            return False, "✗ /api/health returned invalid JSON"

        if status == 'ok':
            return True, "✓ /api/health returned 200, status ok"
        return False, f"✗ /api/health status: {status}"

    except requests.exceptions.Timeout:
        return False, f"✗ /api/health timed out after {timeout} seconds"
    except requests.exceptions.ConnectionError:
        return False, "✗ /api/health connection failed"
    except requests.exceptions.RequestException as e:
        return False, f"✗ /api/health error: {str(e)}"


def check_reference_calculation(url: str, timeout: int = 10) -> Tuple[bool, str]:
    """
    Posts the reference simulation and compares the March figures.

    Returns:
        Tuple[bool, str]: (success, message)
    """
    endpoint = "/api/calculations/periods"
    full_url = f"{url.rstrip('/')}{endpoint}"

    try:
        response = requests.post(full_url, json=REFERENCE_PAYLOAD, timeout=timeout)

        if response.status_code != 200:
            return False, f"✗ {endpoint} returned {response.status_code}"

        try:
            rows = response.json().get('data') or []
        except ValueError:
            return False, f"✗ {endpoint} returned invalid JSON"

        if len(rows) != 12:
            return False, f"✗ {endpoint} returned {len(rows)} months (expected 12)"

        march = rows[REFERENCE_MONTH]
        mismatches = [
            f"{key}={march.get(key)} (expected {value})"
            for key, value in EXPECTED.items()
            if abs((march.get(key) or 0) - value) > 1e-6
        ]
        if mismatches:
            return False, f"✗ {endpoint} wrong figures: {', '.join(mismatches)}"
        return True, f"✓ {endpoint} computed the reference simulation"

    except requests.exceptions.Timeout:
        return False, f"✗ {endpoint} timed out after {timeout} seconds"
    except requests.exceptions.ConnectionError:
        return False, f"✗ {endpoint} connection failed"
    except requests.exceptions.RequestException as e:
        return False, f"✗ {endpoint} error: {str(e)}"


def run_health_checks(url: str, environment: str) -> Dict[str, Tuple[bool, str]]:
    print(f"\n{'='*60}")
    print(f"Post-Deployment Health Checks - {environment.upper()}")
    print(f"{'='*60}\n")
    print(f"Target URL: {url}\n")

    results = {}

    print("Check 1: API health check (/api/health)...")
    success, message = check_health_endpoint(url, timeout=15)
    results["api_health"] = (success, message)
    print(f"  {message}\n")

    print("Check 2: Reference calculation (/api/calculations/periods)...")
    success, message = check_reference_calculation(url, timeout=15)
    results["reference_calculation"] = (success, message)
    print(f"  {message}\n")

    return results


def print_summary(results: Dict[str, Tuple[bool, str]], environment: str) -> bool:
    """
    Prints a summary of health check results.

    Returns:
        bool: True if all checks passed, False otherwise
    """
    print(f"{'='*60}")
    print(f"Health Check Summary - {environment.upper()}")
    print(f"{'='*60}\n")

    passed = sum(1 for success, _ in results.values() if success)
    total = len(results)

    for check_name, (success, _) in results.items():
        symbol = "✓" if success else "✗"
        print(f"{symbol} {check_name}: {'PASS' if success else 'FAIL'}")

    print(f"\nTotal: {passed}/{total} checks passed\n")
    return passed == total


def main():
    parser = argparse.ArgumentParser(description="Run post-deployment health checks")
    parser.add_argument("--url", required=True, help="Deployment URL to check")
    parser.add_argument(
        "--environment",
        required=True,
        choices=["staging", "production"],
        help="Deployment environment"
    )
    parser.add_argument(
        "--retry",
        type=int,
        default=3,
        help="Number of retry attempts if checks fail (default: 3)"
    )
    parser.add_argument(
        "--retry-delay",
        type=int,
        default=10,
        help="Delay in seconds between retries (default: 10)"
    )

    args = parser.parse_args()

    for attempt in range(1, args.retry + 1):
        if attempt > 1:
            print(f"\nRetry attempt {attempt}/{args.retry}")
            time.sleep(args.retry_delay)

        results = run_health_checks(args.url, args.environment)
        if print_summary(results, args.environment):
            sys.exit(0)

    print(f"✗ HEALTH CHECKS FAILED AFTER {args.retry} ATTEMPTS", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    main()
