"""Entry point for round matching calculation"""
import argparse
import json
import logging
import os
import sys
import traceback
from typing import List, Optional

from grants_matching.calculator import Calculator, CalculatorOptions
from grants_matching.config import settings
from grants_matching.db import db
from grants_matching.services.coinbase import CoinbasePriceOracle
from grants_matching.services.data_provider import FileSystemDataProvider, parse_overrides
from grants_matching.services.prices import DatabasePriceOracle
from grants_matching.services.storage import StorageService

logging.basicConfig(level=settings.LOG_LEVEL, format='%(message)s')
logger = logging.getLogger(__name__)

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Compute quadratic funding matching for a round')
    parser.add_argument('--chain-id', type=int, required=True, help='Chain id of the round')
    parser.add_argument('--round-id', required=True, help='Round id (address)')
    parser.add_argument('--min-amount', type=int, help='Minimum contribution in match token units')
    parser.add_argument('--matching-cap-amount', type=int, help='Per recipient cap in match token units')
    parser.add_argument('--passport-threshold', type=float, help='Raw passport score a voter must exceed')
    parser.add_argument('--enable-passport', action=argparse.BooleanOptionalAction, default=None,
                        help='Force sybil defense on or off, default follows the round')
    parser.add_argument('--ignore-saturation', action='store_true', help='Pay subsidies even above the pool')
    parser.add_argument('--overrides', help='CSV file with contributionId,coefficient columns')
    parser.add_argument('--price-source', choices=['database', 'coinbase'], default='coinbase',
                        help='Where USD prices come from')
    parser.add_argument('--data-dir', default=settings.DATA_DIR, help='Directory containing input files')
    parser.add_argument('--output-dir', default=settings.OUTPUT_DIR, help='Directory for results.json')
    return parser.parse_args(argv)

def run(argv: Optional[List[str]] = None) -> None:
    """Calculate matching for one round and write results.json."""
    args = parse_args(argv)
    try:
        overrides = {}
        if args.overrides:
            with open(args.overrides, 'rb') as f:
                overrides = parse_overrides(f.read())

        if args.price_source == 'database':
            db.init(schema_name=settings.DATABASE_SCHEMA)
            price_oracle = DatabasePriceOracle(StorageService(db))
        else:
            price_oracle = CoinbasePriceOracle()

        calculator = Calculator(CalculatorOptions(
            data_provider=FileSystemDataProvider(args.data_dir),
            price_oracle=price_oracle,
            chain_id=args.chain_id,
            round_id=args.round_id,
            minimum_amount=args.min_amount,
            matching_cap_amount=args.matching_cap_amount,
            passport_threshold=args.passport_threshold,
            enable_passport=args.enable_passport,
            ignore_saturation=args.ignore_saturation,
            overrides=overrides
        ))
        results = calculator.calculate()

        # Save results
        os.makedirs(args.output_dir, exist_ok=True)
        output_path = os.path.join(args.output_dir, "results.json")
        with open(output_path, 'w') as f:
            json.dump([result.model_dump(mode='json') for result in results], f, indent=2)

        logger.info(f"Matching calculation complete: {len(results)} results written to {output_path}")

    except Exception as e:
        logger.error(f"Error during matching calculation: {e}")
        traceback.print_exc()
        sys.exit(1)
    finally:
        db.dispose()

if __name__ == "__main__":
    run()
