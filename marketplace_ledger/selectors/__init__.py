"""Read-only selectors over the ledger."""

from marketplace_ledger.selectors.aggregation_selector import AggregationSelector
from marketplace_ledger.selectors.contract_selector import ContractSelector
from marketplace_ledger.selectors.profile_selector import ProfileSelector

__all__ = ["AggregationSelector", "ContractSelector", "ProfileSelector"]
