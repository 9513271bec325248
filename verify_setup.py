"""
Setup verification script for the Recos Manager backend.
Checks dependencies, configuration and the hosted services.
"""
import asyncio
import sys
import os
from typing import List, Tuple

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"


def print_status(message: str, status: bool):
    """Print colored status message."""
    symbol = f"{GREEN}✓{RESET}" if status else f"{RED}✗{RESET}"
    print(f"{symbol} {message}")


async def check_python_version() -> bool:
    """Check Python version is 3.10+."""
    version = sys.version_info
    if version.major == 3 and version.minor >= 10:
        print_status(f"Python version: {version.major}.{version.minor}.{version.micro}", True)
        return True
    else:
        print_status(f"Python version {version.major}.{version.minor} (requires 3.10+)", False)
        return False


async def check_dependencies() -> bool:
    """Check if required packages are installed."""
    required_packages = [
        "fastapi",
        "uvicorn",
        "pydantic_settings",
        "httpx",
        "multipart",
        "supabase",
        "pptx",
        "fitz",
        "PIL",
    ]

    all_installed = True
    for package in required_packages:
        try:
            __import__(package)
            print_status(f"Package '{package}' installed", True)
        except ImportError:
            print_status(f"Package '{package}' missing", False)
            all_installed = False

    return all_installed


async def check_env_file() -> bool:
    """Check if .env file exists."""
    if os.path.exists(".env"):
        print_status(".env file exists", True)
        return True
    else:
        print_status(".env file missing (copy from .env.example)", False)
        return False


async def check_data_service() -> bool:
    """Check the Supabase credentials and that the clients table answers."""
    from recos_manager.config import settings
    from recos_manager.database import check_data_service as ping

    missing = settings.missing_data_service_settings()
    if missing:
        print_status(f"Data service settings missing: {', '.join(missing)}", False)
        return False

    reachable = await ping()
    print_status(f"Data service at {settings.SUPABASE_URL}", reachable)
    if not reachable:
        print(f"  {YELLOW}Check SUPABASE_URL / SUPABASE_ANON_KEY and the table policies{RESET}")
    return reachable


async def check_ai_service() -> bool:
    """Check the OpenAI key is set and accepted."""
    from recos_manager.services.ai_assistant import AIAssistantService

    service = AIAssistantService()
    if not service.is_configured:
        print_status("OPENAI_API_KEY not set (AI assist disabled)", False)
        return False

    healthy = await service.check_health()
    print_status(f"AI provider at {service.base_url} (model {service.model})", healthy)
    return healthy


async def main():
    """Run all verification checks."""
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}Recos Manager Backend - Setup Verification{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

    checks: List[Tuple[str, callable]] = [
        ("Python Version", check_python_version),
        ("Dependencies", check_dependencies),
        ("Environment File", check_env_file),
        ("Data Service", check_data_service),
        ("AI Provider", check_ai_service),
    ]

    results = []

    for check_name, check_func in checks:
        print(f"\n{BLUE}Checking {check_name}...{RESET}")
        try:
            result = await check_func()
            results.append(result)
        except Exception as e:
            print_status(f"Error during check: {str(e)}", False)
            results.append(False)

    # Summary
    print(f"\n{BLUE}{'='*60}{RESET}")
    passed = sum(results)
    total = len(results)

    if passed == total:
        print(f"{GREEN}✓ All checks passed! ({passed}/{total}){RESET}")
        print(f"\n{GREEN}You're ready to run the backend:{RESET}")
        print(f"  uvicorn recos_manager.main:app --reload")
    else:
        print(f"{RED}✗ Some checks failed ({passed}/{total} passed){RESET}")
        print(f"\n{YELLOW}Please fix the issues above before running the backend.{RESET}")
        sys.exit(1)

    print(f"{BLUE}{'='*60}{RESET}\n")


if __name__ == "__main__":
    asyncio.run(main())
