from __future__ import annotations

if __name__ == "__main__":
    from etto.ui.main_window import run_app

    run_app()
