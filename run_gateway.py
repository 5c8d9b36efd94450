#!/usr/bin/env python3
"""
Start the RooLLM bot bridge.

Usage:
    python run_gateway.py
"""
from dotenv import load_dotenv

if __name__ == "__main__":
    load_dotenv()

    import uvicorn

    from roo_bridge import config

    host = config.gateway_host()
    port = config.gateway_port()

    print(f"Starting RooLLM bot bridge on {host}:{port}")
    print(f"Messaging endpoint: http://{host}:{port}/api/messages")
    print(f"WebSocket endpoint: ws://{host}:{port}/api/messages")
    print(f"Health check: http://{host}:{port}/health")
    print()

    uvicorn.run("roo_bridge.gateway.app:create_app", factory=True, host=host, port=port)
