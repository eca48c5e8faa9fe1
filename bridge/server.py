"""
FastAPI websocket server for the driving simulator.
Each connection runs its own MPC control session.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, WebSocket
import uvicorn

from bridge.session import SessionHandler
from control.mpc_controller import MPCConfig, MPCController


def _get_bridge_logger() -> logging.Logger:
    log_path = Path(__file__).resolve().parents[1] / "tmp" / "logs" / "mpc_bridge.log"
    log_path.parent.mkdir(parents=True, exist_ok=True)

    bridge_logger = logging.getLogger("mpc_bridge")
    bridge_logger.setLevel(logging.INFO)

    if not any(isinstance(h, logging.FileHandler) and h.baseFilename == str(log_path)
               for h in bridge_logger.handlers):
        handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
        handler.setFormatter(formatter)
        bridge_logger.addHandler(handler)
        bridge_logger.propagate = False

    return bridge_logger


logger = _get_bridge_logger()


def create_app(config: Optional[MPCConfig] = None) -> FastAPI:
    """Build the bridge application for the given tuning constants."""
    app = FastAPI(title="MPC Driver Bridge")
    app.state.config = config or MPCConfig()
    app.state.active_sessions = 0

    async def simulator_socket(websocket: WebSocket):
        """Run one control session for the lifetime of the connection."""
        await websocket.accept()
        cfg: MPCConfig = app.state.config

        async def receive() -> Optional[str]:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return None
            text = message.get("text")
            if text is None and message.get("bytes") is not None:
                text = message["bytes"].decode("utf-8", errors="replace")
            return text or ""

        handler = SessionHandler(
            MPCController(cfg),
            receive=receive,
            send=websocket.send_text,
            actuation_period=cfg.actuation_period,
            queue_size=cfg.inbound_queue_size,
            slow_cycle_margin=cfg.slow_cycle_margin,
        )
        app.state.active_sessions += 1
        logger.info("Session opened from %s", websocket.client)
        try:
            await handler.run()
        finally:
            app.state.active_sessions -= 1
            logger.info("Session closed after %d control cycles", handler.cycles)

    # The simulator connects through a socket.io path; plain clients use /
    app.add_api_websocket_route("/", simulator_socket)
    app.add_api_websocket_route("/socket.io/", simulator_socket)

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "actuation_period_ms": app.state.config.actuation_period_ms,
            "horizon": app.state.config.horizon,
            "active_sessions": app.state.active_sessions,
        }

    return app


app = create_app()


def run_server(host: str = "0.0.0.0", port: int = 4567, config: Optional[MPCConfig] = None):
    """Run the bridge server."""
    logger.info("Starting MPC driver bridge on %s:%d", host, port)
    print(f"Starting MPC Driver Bridge on {host}:{port}")
    print("Endpoints:")
    print("  WS   /            - Simulator telemetry/steering channel")
    print("  WS   /socket.io/  - Same channel, simulator default path")
    print("  GET  /api/health  - Health check")

    uvicorn.run(create_app(config), host=host, port=port)


if __name__ == "__main__":
    run_server()
