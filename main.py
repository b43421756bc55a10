import argparse
import logging
import sys
import time

from sdm_encoder import config

log = logging.getLogger("sdm_encoder")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Provision tags with an SDM URL as they are placed on the reader.")
    parser.add_argument("--company-id", default=config.COMPANY_ID,
                        help="company id substituted into the URL (default: %(default)s)")
    parser.add_argument("--key-number", type=int, default=config.KEY_NUMBER,
                        help="key slot to authenticate with (default: %(default)s)")
    parser.add_argument("--compat", action="store_true",
                        help="skip challenge and response MAC verification")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log every command and response")
    return parser.parse_args(argv)


def observer_options(args):
    """ProvisioningObserver 인자. --compat은 SDM_STRICT 설정보다 우선합니다."""
    return {
        "key": config.STATIC_KEY,
        "key_number": args.key_number,
        "strict": config.STRICT and not args.compat,
    }


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s"
    )

    # pyscard는 리더를 쓸 때만 필요
    from smartcard.CardMonitoring import CardMonitor
    from sdm_encoder.reader import ProvisioningObserver

    observer = ProvisioningObserver(args.company_id, **observer_options(args))
    monitor = CardMonitor()
    monitor.addObserver(observer)
    log.info("Looking for tags... (Ctrl+C to quit)")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        log.info("Stopping")
    finally:
        monitor.deleteObserver(observer)
    return 0


if __name__ == "__main__":
    sys.exit(main())
