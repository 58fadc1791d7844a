import os
import sys
import traceback

# Ensure project root is on sys.path so `import movieinfo` resolves consistently
ROOT = os.path.dirname(os.path.abspath(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

try:
    from movieinfo import create_app
except Exception:
    print("[run_server] Failed to import movieinfo:create_app")
    traceback.print_exc()
    raise

app = create_app()

if __name__ == "__main__":
    host = os.getenv("APP_HOST", "127.0.0.1")
    port = int(os.getenv("APP_PORT") or os.getenv("PORT") or "5000")
    debug = app.config.get("ENV") == "development"
    print(f"[run_server] Starting Movie Info API on http://{host}:{port}/api")
    app.run(host=host, port=port, debug=debug, use_reloader=False)
