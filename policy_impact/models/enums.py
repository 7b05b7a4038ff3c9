from enum import Enum

class DependentType(str, Enum):
    WORKFLOW = "workflow"
    MODULE = "module"
    TEMPLATE = "template"
    ASSESSMENT = "assessment"
    TRAINING = "training"
    DOCUMENT = "document"

class DependencyStrength(str, Enum):
    STRONG = "strong"   # dependent entity breaks on policy change
    MEDIUM = "medium"   # adjustment likely required
    WEAK = "weak"       # cosmetic / informational

class ImpactRiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

class ReportFormat(str, Enum):
    JSON = "json"
    HTML = "html"
    PDF = "pdf"

class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

# Node type of the graph root (and of templates traversed as policies)
POLICY_NODE_TYPE = "policy"
