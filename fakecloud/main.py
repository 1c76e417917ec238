import sys
import os
import argparse
import threading
import logging

from fakecloud.utils.config import load_config, get_section
from fakecloud.api.elb import ElbServer
from fakecloud.api.route53 import Route53Server

def setup_logging(logging_config: dict) -> None:
    """Configures the root logger from the `logging` config section."""
    log_level_name = (logging_config.get('level') or 'INFO').upper()
    log_file = logging_config.get('file')

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level_name, logging.INFO))

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Console Handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File Handler (if specified)
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Per-request lines from Werkzeug drown out the simulator's own log
    logging.getLogger('werkzeug').setLevel(logging.ERROR)

def build_servers() -> tuple:
    """Creates the fake ELB and Route 53 servers from configuration."""
    elb_config = get_section('elb')
    route53_config = get_section('route53')
    elb = ElbServer(
        host=elb_config['host'],
        port=int(elb_config['port']),
        dns_suffix=elb_config['dns_suffix']
    )
    route53 = Route53Server(host=route53_config['host'], port=int(route53_config['port']))
    return elb, route53

def wait_for_interrupt() -> None:
    """Keeps the main thread alive until Ctrl+C."""
    while True:
        threading.Event().wait(1)

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the fake ELB and Route 53 servers.")
    parser.add_argument('--config', type=str, default='config.yaml', help='Path to the configuration file.')
    args = parser.parse_args(argv)

    if not os.path.exists(args.config):
        print(f"Error: Configuration file not found at {args.config}", file=sys.stderr)
        return 1

    load_config(args.config)
    setup_logging(get_section('logging'))

    elb, route53 = build_servers()
    try:
        elb.start()
        route53.start()
    except OSError as e:
        print(f"Error starting servers: {e}", file=sys.stderr)
        elb.quit()
        return 1

    print(f"Fake ELB API: {elb.url}")
    print(f"Fake Route 53 API: {route53.url}")

    try:
        wait_for_interrupt()
    except KeyboardInterrupt:
        print("\nShutting down servers...")
    finally:
        elb.quit()
        route53.quit()
    return 0

if __name__ == '__main__':
    sys.exit(main())
