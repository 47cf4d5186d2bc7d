"""
Failsim: replica set failover simulation

Runs a write workload and a read workload against a replicated store while
killing and restarting its nodes on a fixed timeline, and reports how much
the client's retry policy absorbed.
"""

import sys
import logging
from pathlib import Path
from colorama import init, Fore, Style

from core import Config, setup_logging
from core.node_controller import NodeController
from core.orchestrator import StepAction, canonical_schedule
from core.simulation import Simulation, SimulationResult
from core.store import FatalConfigurationError, MongoStore
from utils.cli_runtime import (build_failsim_arg_parser, color_disabled,
                               configure_windows_console_utf8, overrides_from_args)
from utils.error_messages import format_store_config_error


def display_schedule(schedule):
    """Print the failover timeline."""
    elapsed = 0.0
    print(f"{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}")
    print(f"{Fore.CYAN}FAILOVER SCHEDULE{Style.RESET_ALL}")
    print(f"{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}")
    for index, step in enumerate(schedule, 1):
        elapsed += step.wait
        target = ''
        if step.action is StepAction.KILL_NODE:
            target = f" (port {step.port})"
        elif step.action is StepAction.START_NODE:
            target = f" ({' '.join(step.launch_args)})"
        print(f"  {index}. wait {step.wait:>5g}s  t+{elapsed:>6g}s  {step.label}{target}")
    print(f"{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}\n")


def display_summary(result: SimulationResult, write_count: int):
    """Display run summary."""
    stats = result.stats
    anomalies = stats['disruption_anomalies']
    print(f"""
  {Fore.GREEN}[COMPLETE]{Style.RESET_ALL} {Style.DIM}runtime:{Style.RESET_ALL} {Fore.CYAN}{result.elapsed:.1f}s{Style.RESET_ALL}

  {Fore.GREEN}▓▓{Style.RESET_ALL} {Style.DIM}WRITES{Style.RESET_ALL}
     {Style.DIM}written......{Style.RESET_ALL} {Fore.GREEN}{stats['records_written']:>5}{Style.RESET_ALL} {Style.DIM}of {write_count}{Style.RESET_ALL}
     {Style.DIM}lost.........{Style.RESET_ALL} {Fore.RED}{stats['records_lost']:>5}{Style.RESET_ALL}

  {Fore.GREEN}▓▓{Style.RESET_ALL} {Style.DIM}READS{Style.RESET_ALL}
     {Style.DIM}succeeded....{Style.RESET_ALL} {Fore.GREEN}{stats['reads_succeeded']:>5}{Style.RESET_ALL}
     {Style.DIM}failed.......{Style.RESET_ALL} {Fore.RED}{stats['reads_failed']:>5}{Style.RESET_ALL}
     {Style.DIM}last count...{Style.RESET_ALL} {Fore.WHITE}{stats['last_read_count']:>5}{Style.RESET_ALL}

  {Fore.GREEN}▓▓{Style.RESET_ALL} {Style.DIM}DISRUPTION{Style.RESET_ALL}
     {Style.DIM}killed.......{Style.RESET_ALL} {Fore.YELLOW}{stats['nodes_killed']:>5}{Style.RESET_ALL}
     {Style.DIM}started......{Style.RESET_ALL} {Fore.YELLOW}{stats['nodes_started']:>5}{Style.RESET_ALL}
     {Style.DIM}anomalies....{Style.RESET_ALL} {(Fore.RED if anomalies else Fore.WHITE)}{anomalies:>5}{Style.RESET_ALL}
     {Style.DIM}retries......{Style.RESET_ALL} {Fore.CYAN}{stats['failed_attempts']:>5}{Style.RESET_ALL} {Style.DIM}failed attempts{Style.RESET_ALL}
""")
    if not result.workloads_stopped:
        print(f"{Fore.YELLOW}Warning: a workload did not stop in time (see log){Style.RESET_ALL}")


def main():
    """Main entry point with defensive error handling."""
    configure_windows_console_utf8()
    args = build_failsim_arg_parser().parse_args()
    no_color = color_disabled(args.no_color)
    init(strip=True if no_color else None)  # Initialize colorama

    config_path = Path(args.config) if args.config else Path('config_files/config.json')
    config = Config(config_path if config_path.exists() else None)

    is_valid, errors = config.apply_overrides(overrides_from_args(args))
    if not is_valid:
        for error in errors:
            print(Fore.RED + error + Style.RESET_ALL)
        sys.exit(1)

    schedule = canonical_schedule(config)
    if args.show_schedule:
        display_schedule(schedule)
        sys.exit(0)

    try:
        log_file = setup_logging(config.log_folder, config.max_log_files, use_color=not no_color)
    except OSError as e:
        print(Fore.RED + f"Error setting up logging: {e}" + Style.RESET_ALL)
        sys.exit(1)

    logging.info("=" * 70)
    logging.info("Failsim started")
    logging.info(f"Log file: {log_file}")
    display_schedule(schedule)

    def store_factory():
        return MongoStore(
            config.connection_string,
            config.database,
            config.collection,
            server_selection_timeout_ms=config.server_selection_timeout_ms,
        )

    controller = NodeController(config.node_executable, terminate_timeout=config.terminate_timeout)
    simulation = Simulation(config, store_factory, controller, schedule=schedule,
                            stop_nodes=args.stop_nodes)

    try:
        result = simulation.run()
    except FatalConfigurationError as e:
        message = format_store_config_error(config.connection_string, str(e))
        print(Fore.RED + message + Style.RESET_ALL)
        logging.error(message)
        sys.exit(1)

    display_summary(result, config.write_count)
    logging.info("Failsim completed")
    sys.exit(0)


if __name__ == '__main__':
    main()
