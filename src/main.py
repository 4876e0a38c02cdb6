import sys
import logging
from decimal import Decimal, localcontext
from typing import Dict, TextIO

from config import load_config
from errors import PaymentsEngineError
from models import ClientAccount
from payments_engine import PaymentsEngine, truncate_amount

logger = logging.getLogger(__name__)

OUTPUT_HEADER = "client,available,held,total,locked"


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    truncated = truncate_amount(value)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(truncated.as_tuple().digits))
        normalized = truncated.normalize()
    if normalized.is_zero():
        normalized = Decimal("0")
    return f"{normalized:f}"


def write_accounts(accounts: Dict[int, ClientAccount], out: TextIO) -> None:
    """Write accounts as CSV, in the order they appear in the mapping."""
    print(OUTPUT_HEADER, file=out)
    for client_id, account in accounts.items():
        print(
            f"{client_id},"
            f"{format_decimal(account.available)},"
            f"{format_decimal(account.held)},"
            f"{format_decimal(account.total)},"
            f"{str(account.locked).lower()}",
            file=out,
        )


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    config = load_config()

    logging.basicConfig(
        level=config.log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    engine = PaymentsEngine(report_stats=config.report_stats)
    try:
        accounts = engine.process_file(argv[0])
    except PaymentsEngineError as e:
        logger.error(str(e))
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
