from automation_engine.domain.workflow.entities.workflow import (
    Edge,
    Node,
    NodeType,
    WorkflowDefinition,
)
from automation_engine.domain.workflow.exceptions import WorkflowValidationError
from automation_engine.domain.workflow.value_objects.cron import CronExpression
from automation_engine.domain.workflow.value_objects.graph import WorkflowGraph
from automation_engine.domain.workflow.value_objects.schemas import is_blank, required_fields
from automation_engine.domain.workflow.value_objects.trigger import SCHEDULE_SUBTYPE

MISSING_TRIGGER = "Add at least one Trigger node."
MISSING_ACTION = "Add at least one Action node."
MISSING_EDGES = "Connect your nodes with arrows."
DISCONNECTED_NODE = 'Node "{node_id}" is not connected to a trigger.'
INVALID_CRON = 'Schedule node "{node_id}" has an invalid cron expression: {error}'


class WorkflowValidator:
    """
    Static checks run before a definition may go live.

    `validate` collects every issue in a fixed order and never short-circuits;
    `ensure_activatable` additionally rejects duplicate ids, dangling edges,
    cycles, nodes no trigger can reach and unparseable cron schedules.
    """

    @staticmethod
    def validate(nodes: list[Node], edges: list[Edge]) -> list[str]:
        issues: list[str] = []

        if not any(node.type == NodeType.TRIGGER for node in nodes):
            issues.append(MISSING_TRIGGER)
        if not any(node.type == NodeType.ACTION for node in nodes):
            issues.append(MISSING_ACTION)
        if len(nodes) > 1 and not edges:
            issues.append(MISSING_EDGES)

        for node in nodes:
            for field in required_fields(node.subtype):
                if is_blank(node.config.get(field)):
                    issues.append(f'"{node.subtype}" node is missing required field: {field}')

        return issues

    @classmethod
    def ensure_activatable(cls, definition: WorkflowDefinition) -> WorkflowGraph:
        issues = cls.validate(definition.nodes, definition.edges)
        if issues:
            raise WorkflowValidationError(issues)

        graph = WorkflowGraph.validate_structure(definition)
        issues = [DISCONNECTED_NODE.format(node_id=node_id) for node_id in graph.disconnected_nodes()]
        for node in definition.nodes:
            if node.subtype != SCHEDULE_SUBTYPE:
                continue
            try:
                CronExpression.parse(str(node.config.get("cron") or ""))
            except ValueError as e:
                issues.append(INVALID_CRON.format(node_id=node.id, error=e))
        if issues:
            raise WorkflowValidationError(issues)
        return graph
