"""Services for planning logic."""

from .conflicts import Conflict, ConflictDetector, ConflictPriority, ConflictType
from .ledger import AssignmentItem, AssignmentLedger, BulkResult
from .requirements import LaborRequirementStore, LaborRequirementView, RequirementItem
from .skills import SkillMatch, SkillMatchRequest, find_skill_matches
from .templates import TemplateHours, TemplateService
from .timeline import TimelineEntry, build_timeline, timeline_matrix
from .utilization import load_level, staffing_percentage, staffing_status, utilization

__all__ = [
    "Conflict",
    "ConflictDetector",
    "ConflictPriority",
    "ConflictType",
    "AssignmentItem",
    "AssignmentLedger",
    "BulkResult",
    "LaborRequirementStore",
    "LaborRequirementView",
    "RequirementItem",
    "SkillMatch",
    "SkillMatchRequest",
    "find_skill_matches",
    "TemplateHours",
    "TemplateService",
    "TimelineEntry",
    "build_timeline",
    "timeline_matrix",
    "load_level",
    "staffing_percentage",
    "staffing_status",
    "utilization",
]
