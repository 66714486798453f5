import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from poolsweep.core.clients import ClientFactory
from poolsweep.core.config import Config
from poolsweep.core.errors import SweepError, ServiceUnavailable, ResourceStillExists
from poolsweep.core.logging import log_context, timed
from poolsweep.core.sweep import SweepResult, SweepStatus
from poolsweep.registry import SweeperRegistry
from poolsweep.resources.cognito_user_pool import check_destroyed, precheck

MAX_REGION_WORKERS = 20

REPORT_SECTIONS = ('deleted', 'excluded', 'skipped', 'failed')

# (sweeper name, result or None, error message or None). A failed sweep keeps
# its partial result so deletions made before the failure are still reported.
Outcome = Tuple[str, Optional[SweepResult], Optional[str]]


class SweepRunner:
    def __init__(self, config: Config, registry: SweeperRegistry,
                 factory: Optional[ClientFactory] = None):
        self.config = config
        self.registry = registry
        self.factory = factory or ClientFactory()
        self.report: Dict[str, Dict[str, List[str]]] = {}

    def _record_result(self, sweeper, status, item):
        if sweeper not in self.report:
            self.report[sweeper] = {section: [] for section in REPORT_SECTIONS}
        self.report[sweeper][status].append(item)

    def _record_outcome(self, region: str, outcome: Outcome):
        name, result, error = outcome
        if result is not None:
            for handle in result.deleted:
                self._record_result(name, 'deleted', f"{handle.display_name} ({region})")
            for handle in result.excluded:
                self._record_result(name, 'excluded', f"{handle.display_name} ({region})")
            if result.status is SweepStatus.SKIPPED:
                self._record_result(name, 'skipped', f"{region} ({result.skipped_reason})")
        if error is not None:
            self._record_result(name, 'failed', f"{region} ({error})")

    def resolve_regions(self) -> List[str]:
        if "all" in self.config.regions:
            return self.factory.available_regions()
        return list(self.config.regions)

    def selected_sweepers(self) -> List[str]:
        selected = [n for n in self.registry.names() if self.config.should_include_sweeper(n)]
        unknown = [n for n in self.config.sweepers if n != "all" and n not in self.registry]
        if unknown:
            raise KeyError(f"Unknown sweeper(s): {', '.join(unknown)}")
        return self.registry.execution_order(selected)

    def sweep_region(self, region: str, order: List[str]) -> List[Outcome]:
        outcomes = []
        with log_context(region=region), timed(f"Sweep of {region}"):
            for name in order:
                sweeper = self.registry.get(name)(self.factory, self.config)
                with log_context(sweeper=name):
                    logging.info(f"Running sweeper {name}")
                    try:
                        result = sweeper.sweep(region)
                    except (SweepError, ClientError, BotoCoreError, ValueError) as e:
                        logging.error(f"Sweeper {name} failed: {e}")
                        outcomes.append((name, getattr(e, 'result', None), str(e)))
                        continue
                outcomes.append((name, result, None))
        return outcomes

    def run(self) -> bool:
        """Sweep every configured region. Returns False if any sweeper failed."""
        regions = self.resolve_regions()
        if not regions:
            logging.error('No regions found. Exiting.')
            return False
        order = self.selected_sweepers()
        logging.info(f"Sweeping regions {regions} with {order}")
        if self.config.dry_run:
            logging.info("Running in dry-run mode - no resources will be deleted")

        ok = True
        with ThreadPoolExecutor(max_workers=min(MAX_REGION_WORKERS, len(regions))) as executor:
            future_map = {executor.submit(self.sweep_region, r, order): r for r in regions}
            for fut in as_completed(future_map):
                region = future_map[fut]
                for outcome in fut.result():
                    if outcome[2] is not None:
                        ok = False
                    self._record_outcome(region, outcome)
                logging.info(f"Completed region {region}")
        return ok

    def check_regions(self) -> Dict[str, str]:
        """Report whether the service can be used in each configured region."""
        availability = {}
        for region in self.resolve_regions():
            try:
                precheck(self.factory.get_client(region))
                availability[region] = 'available'
            except ServiceUnavailable as e:
                availability[region] = f'unavailable ({e.__cause__})'
            except (ClientError, BotoCoreError) as e:
                availability[region] = f'error ({e})'
        return availability

    def verify_destroyed(self, region: str, pool_ids: Iterable[str]) -> Dict[str, str]:
        """Report, per user pool id, whether it is gone from ``region``."""
        client = self.factory.get_client(region)
        status = {}
        with log_context(region=region):
            for pool_id in pool_ids:
                try:
                    check_destroyed(client, [pool_id])
                    status[pool_id] = 'destroyed'
                except ResourceStillExists:
                    status[pool_id] = 'exists'
        return status

    def print_report(self):
        print('\n=== Sweep Report ===')
        for sweeper, results in self.report.items():
            print(f"\nSweeper: {sweeper}")
            for section in REPORT_SECTIONS:
                print(f"  {section.capitalize()}:")
                if results[section]:
                    for item in results[section]:
                        print(f"    - {item}")
                else:
                    print('    None')
