from .Config import ExplorerConfig, is_valid_start_url
from .Crawl import CrawlSession, ExplorationResult, FrontierEntry
from .Errors import (
    ConfigurationError,
    ExplorationError,
    ExplorerError,
    KnowledgeFormatError,
    KnowledgeNotFoundError,
)
from .Knowledge import (
    INITIAL_VERSION,
    PAGE_CATEGORIES,
    SCHEMA_VERSION,
    AppKnowledge,
    Flow,
    FormEntry,
    FrameworkInfo,
    Navigation,
    PageEntry,
    Step,
    TestScenario,
    UpdateEntry,
    bump_minor,
    format_version,
    migrate_knowledge,
    parse_version,
)
from .Page import (
    ButtonRecord,
    ElementRecord,
    FieldRecord,
    FormRecord,
    PageRecord,
    PageVisit,
)
