#!/usr/bin/env python3
"""
Basic Usage Example - Drawing Proposal Engine

This script demonstrates the engine on a simulated candle series. It shows how to:
- Configure logging
- Initialize the engine
- Request proposals for each analysis type
- Read the proposal group and its diagnostics

Pass --live to fetch klines from the exchange instead of simulating them.

Run: python examples/basic_usage.py [--live]
"""

import json
import math
import sys
import time
from typing import Any, Dict, List

from drawing_proposals.data.market_data import BinanceKlinesClient
from drawing_proposals.data.models import Candle
from drawing_proposals.engine import ProposalGenerator
from drawing_proposals.logging.config import configure_logging


def create_sample_candles(count: int = 200, start_price: float = 100.0) -> List[Candle]:
    """Hourly candles drifting upward with a damped oscillation."""
    start = int(time.time()) // 3600 * 3600 - count * 3600
    candles = []
    previous = start_price
    for i in range(count):
        mid = start_price * (1 + 0.001 * i) + 4.0 * math.sin(i / 6.0) * math.exp(-i / 150.0)
        open_price = previous
        close = mid
        high = max(open_price, close) + 0.4
        low = min(open_price, close) - 0.4
        volume = 1000.0 + 300.0 * abs(math.sin(i / 4.0))
        candles.append(Candle(time=start + i * 3600, open=open_price, high=high,
                              low=low, close=close, volume=volume))
        previous = close
    return candles


def print_group(result: Dict[str, Any]) -> None:
    """Print a serialized GenerationResult."""
    if not result["success"]:
        print(f"   ❌ {result['error_kind']}: {result['error']}")
        return

    group = result["proposal_group"]
    print(f"   {group['title']}")
    print(f"   {group['description']}")
    print(f"   Summary: {json.dumps(group['summary'])}")
    for proposal in group["proposals"]:
        print(f"   - [{proposal['priority']}] {proposal['type']} "
              f"{proposal['direction']} confidence={proposal['confidence']:.2f}")
        print(f"     {proposal['reasoning']}")
    print(f"   Diagnostics: {json.dumps(result['diagnostics'], default=str)}")


def main():
    """Main demonstration function."""
    live = "--live" in sys.argv[1:]
    configure_logging(level="WARNING")

    print("🚀 Drawing Proposal Engine - Basic Usage Demo")
    print("=" * 60)

    print("1. Initializing the proposal engine...")
    engine = ProposalGenerator(market_data=BinanceKlinesClient() if live else None)
    print()

    candles = None if live else create_sample_candles()

    for analysis_type in ("trendline", "support-resistance", "fibonacci", "pattern", "all"):
        print(f"2. Requesting {analysis_type} proposals...")
        request = {"symbol": "BTCUSDT", "interval": "1h", "analysisType": analysis_type, "maxProposals": 3}
        if live:
            result = engine.generate(request)
        else:
            result = engine.generate_from_candles(request, candles)
        print_group(result.to_dict())
        print()

    print("3. Requesting with an invalid interval...")
    print_group(engine.generate_from_candles({"symbol": "BTCUSDT", "interval": "2h"}, candles or []).to_dict())


if __name__ == "__main__":
    main()
