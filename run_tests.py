#!/usr/bin/env python3
"""Test runner for Inkwell with coverage reporting."""

import sys
import subprocess
import os
from pathlib import Path

def run_tests():
    """Run all tests with coverage reporting."""

    # Change to the project directory
    os.chdir(Path(__file__).parent)

    print("🧪 Running Inkwell Test Suite")
    print("=" * 50)

    # Install test requirements
    print("📦 Installing test requirements...")
    try:
        subprocess.run([
            sys.executable, "-m", "pip", "install", "-r", "requirements-test.txt"
        ], check=True, capture_output=True)
        print("✅ Test requirements installed successfully")
    except subprocess.CalledProcessError as e:
        print(f"❌ Failed to install test requirements: {e}")
        return False

    # Run tests with coverage
    print("\n🔍 Running tests with coverage...")
    result = subprocess.run([
        sys.executable, "-m", "pytest",
        "tests/",
        "-v",
        "--cov=inkwell_pkg",
        "--cov-report=html",
        "--cov-report=term-missing",
        "--cov-fail-under=80"
    ], check=False)

    if result.returncode == 0:
        print("\n✅ All tests passed!")
        print("📊 Coverage report generated in htmlcov/")
        return True
    print(f"\n❌ Tests failed with return code {result.returncode}")
    return False

def run_concurrency_tests():
    """Run the cache and generator tests, which exercise threads."""
    print("\n⚡ Running concurrency tests...")
    result = subprocess.run([
        sys.executable, "-m", "pytest",
        "tests/test_cache.py",
        "tests/test_generator.py",
        "-v",
        "--durations=10"
    ], check=False)

    if result.returncode == 0:
        print("✅ Concurrency tests passed!")
        return True
    print("❌ Concurrency tests failed!")
    return False

def main():
    """Main test runner."""
    success = True

    if not run_tests():
        success = False

    if not run_concurrency_tests():
        success = False

    print("\n" + "=" * 50)
    if success:
        print("🎉 All test suites completed successfully!")
        print("📈 Check htmlcov/index.html for detailed coverage report")
    else:
        print("💥 Some tests failed. Please review the output above.")

    return 0 if success else 1

if __name__ == "__main__":
    sys.exit(main())
