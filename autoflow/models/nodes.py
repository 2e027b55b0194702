"""Node configuration variants for workflow steps.

Every node carries the common base fields plus the fields of its own type. The
``type`` field is the discriminator: ``NodeConfig`` is a tagged union, so a
payload coming from the builder UI is parsed straight into the right variant.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class NodeType(str, Enum):
    """Enumeration of node types."""
    TRIGGER = "trigger"
    ACTION = "action"
    TABLE = "table"
    PAGE = "page"
    EMAIL = "email"
    INVOICE = "invoice"
    REPORT = "report"
    NOTIFICATION = "notification"


class WireModel(BaseModel):
    """Base for models exchanged with the builder UI (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(WireModel):
    """Canvas position of a node. Has no effect on execution."""
    x: float = 0
    y: float = 0


class BaseNodeConfig(WireModel):
    """Fields shared by every node type."""
    id: str = Field(..., description="Unique identifier of the node within its workflow")
    name: str = Field(..., description="Display name of the node")
    description: Optional[str] = Field(None, description="Free-form description")
    position: Position = Field(default_factory=Position, description="Canvas position")
    enabled: bool = Field(True, description="Disabled nodes are skipped at run time")
    retry_count: Optional[int] = Field(None, ge=0, description="Retries allowed for this node's processor")
    timeout: Optional[int] = Field(None, description="Node deadline in milliseconds")

    @field_validator('id')
    @classmethod
    def validate_id(cls, id_value):
        """Ensure node ID is not blank."""
        if not id_value or not id_value.strip():
            raise ValueError("Node ID cannot be empty")
        return id_value.strip()

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, timeout):
        """Ensure timeout is positive if specified."""
        if timeout is not None and timeout <= 0:
            raise ValueError("Timeout must be a positive number of milliseconds")
        return timeout

    @property
    def is_trigger(self) -> bool:
        return self.type == NodeType.TRIGGER


class TriggerNodeConfig(BaseNodeConfig):
    type: Literal["trigger"] = "trigger"
    trigger_type: Literal["webhook", "schedule", "event", "manual"]
    schedule: Optional[str] = Field(None, description="Cron expression for scheduled triggers")
    webhook_url: Optional[str] = None
    event_source: Optional[str] = None


class ActionNodeConfig(BaseNodeConfig):
    type: Literal["action"] = "action"
    api_endpoint: Optional[str] = None
    method: Optional[Literal["GET", "POST", "PUT", "DELETE"]] = None
    headers: Optional[Dict[str, str]] = None
    payload: Optional[Dict[str, Any]] = None


class TableNodeConfig(BaseNodeConfig):
    type: Literal["table"] = "table"
    table_name: str
    operation: Literal["create", "read", "update", "delete", "query"]
    table_schema: Optional[Dict[str, Literal["string", "number", "boolean", "date"]]] = Field(
        None, alias="schema"
    )
    query: Optional[str] = None

    @field_validator('table_name')
    @classmethod
    def validate_table_name(cls, table_name):
        if not table_name.strip():
            raise ValueError("Table name cannot be empty")
        return table_name.strip()


class PageNodeConfig(BaseNodeConfig):
    type: Literal["page"] = "page"
    page_title: str
    template: str
    data_sources: List[str] = Field(..., description="IDs of table nodes to bind data from")
    route_path: str


class EmailNodeConfig(BaseNodeConfig):
    type: Literal["email"] = "email"
    recipients: List[str]
    subject: str
    template: str
    attachments: Optional[List[str]] = None


class LineItem(WireModel):
    """One invoice line."""
    description: str
    quantity: float
    unit_price: float

    @property
    def total(self) -> float:
        return self.quantity * self.unit_price


class InvoiceNodeConfig(BaseNodeConfig):
    type: Literal["invoice"] = "invoice"
    invoice_template: str
    customer_data: Dict[str, Any]
    line_items: List[LineItem]


class ReportNodeConfig(BaseNodeConfig):
    type: Literal["report"] = "report"
    report_type: Literal["pdf", "csv", "excel"]
    template: str
    data_source: str = Field(..., description="ID of a table node or external data source")
    email_recipients: Optional[List[str]] = None


class NotificationNodeConfig(BaseNodeConfig):
    type: Literal["notification"] = "notification"
    notification_type: Literal["push", "sms", "slack", "discord"]
    recipients: List[str]
    message: str
    channel: Optional[str] = None


NodeConfig = Annotated[
    Union[
        TriggerNodeConfig,
        ActionNodeConfig,
        TableNodeConfig,
        PageNodeConfig,
        EmailNodeConfig,
        InvoiceNodeConfig,
        ReportNodeConfig,
        NotificationNodeConfig,
    ],
    Field(discriminator="type"),
]

NODE_CONFIG_TYPES = {
    NodeType.TRIGGER: TriggerNodeConfig,
    NodeType.ACTION: ActionNodeConfig,
    NodeType.TABLE: TableNodeConfig,
    NodeType.PAGE: PageNodeConfig,
    NodeType.EMAIL: EmailNodeConfig,
    NodeType.INVOICE: InvoiceNodeConfig,
    NodeType.REPORT: ReportNodeConfig,
    NodeType.NOTIFICATION: NotificationNodeConfig,
}
