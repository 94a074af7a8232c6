# tankcheck/engine/__init__.py
from .metrics import DegradationMetrics, compute_metrics
from .verdict import ActionType, Badge, Verdict, compute_verdict
from .issues import InfrastructureIssue, detect_issues, issue_costs, issues_for_tier
from .repairs import RepairOption, eligible_repairs, get_repair
from .simulator import SimulatedResult, SimulationState, simulate
from .projection import project_health
