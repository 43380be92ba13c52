"""
DocScan Server Runner
=====================
Run this directly: python run_server.py
"""
import sys

# Fix console encoding for Windows (handles emojis in log output)
if sys.platform == 'win32':
    try:
        sys.stdout.reconfigure(encoding='utf-8', errors='replace')
        sys.stderr.reconfigure(encoding='utf-8', errors='replace')
    except (AttributeError, OSError):
        pass  # Older Python or redirected output


def main():
    import uvicorn

    from app.core.config import get_settings

    settings = get_settings()

    print()
    print("=" * 60)
    print(f"  {settings.app_name.upper()} SERVER")
    print("=" * 60)
    print()
    print(f"  Scan:      POST http://localhost:{settings.port}/api/ScanDoc")
    print(f"  Health:    http://localhost:{settings.port}/api/health")
    if settings.enable_docs:
        print(f"  API Docs:  http://localhost:{settings.port}/api/docs")
    print()
    print("  Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
