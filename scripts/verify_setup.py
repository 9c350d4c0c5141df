"""
Setup Verification Script
==========================
Quick smoke-test that checks whether every required dependency is
importable, and which OpenVINO devices the runtime can see.

Run after setting up the virtual environment:
    python scripts/verify_setup.py

Exit codes:
    0  -- all checks passed
    1  -- one or more checks failed
"""

import importlib
import logging
import sys

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

# (module_name, display_name, required)
REQUIRED_PACKAGES = [
    ("numpy", "NumPy", True),
    ("openvino", "OpenVINO", True),
    ("tokenizers", "HuggingFace tokenizers", True),
    ("huggingface_hub", "HuggingFace Hub client", True),
    ("yaml", "PyYAML", True),
    ("tqdm", "tqdm", True),
    ("pytest", "pytest", False),  # tests only
]


def check_python_version() -> bool:
    """Verify Python >= 3.9."""
    v = sys.version_info
    ok = v >= (3, 9)
    logger.info(
        "Python %d.%d.%d %s",
        v.major, v.minor, v.micro,
        "(OK)" if ok else "(FAIL: need >= 3.9)",
    )
    return ok


def check_package(module: str, display: str, required: bool) -> bool:
    """Try to import a package and report its version if available."""
    try:
        mod = importlib.import_module(module)
        version = getattr(mod, "__version__", "unknown")
        logger.info("  %-30s  %s", display, version)
        return True
    except ImportError:
        tag = "MISSING (required)" if required else "MISSING (optional)"
        logger.warning("  %-30s  %s", display, tag)
        return not required  # optional packages don't cause failure


def check_devices() -> bool:
    """List the OpenVINO devices; CPU must be among them."""
    try:
        from textembed.openvino.device_manager import DeviceManager
    except ImportError as exc:
        logger.warning("  %-30s  unavailable (%s)", "OpenVINO devices", exc)
        return False

    devices = DeviceManager().list_devices()
    logger.info("  %-30s  %s", "OpenVINO devices", ", ".join(devices) or "none")
    return "CPU" in devices


def main() -> None:
    logger.info("=" * 60)
    logger.info("textembed -- Setup Verification")
    logger.info("=" * 60)

    all_ok = True

    logger.info("\n[1/3] Python version")
    all_ok &= check_python_version()

    logger.info("\n[2/3] Python packages")
    for module, display, required in REQUIRED_PACKAGES:
        all_ok &= check_package(module, display, required)

    logger.info("\n[3/3] OpenVINO devices")
    all_ok &= check_devices()

    logger.info("\n" + "=" * 60)
    if all_ok:
        logger.info("All required checks PASSED.")
    else:
        logger.error("Some checks FAILED.  Fix the issues above and re-run.")
    logger.info("=" * 60)

    sys.exit(0 if all_ok else 1)


if __name__ == "__main__":
    main()
