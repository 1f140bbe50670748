"""
Depth Client - Binance order book depth over REST polling or WebSocket streaming.

Architecture:
- datafeed/: REST fetcher, WebSocket subscriber, payload decoding
- runner.py: polling loop and subscription loop orchestration
- main.py: command-line entry point
"""

__version__ = "0.1.0"
