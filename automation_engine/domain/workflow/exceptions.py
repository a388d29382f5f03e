from typing import Any, Dict, Optional


class WorkflowException(Exception):
    def __init__(
        self,
        message: str,
        error_code: str = "WORKFLOW_ERROR",
        context: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        super().__init__(self.message)


class WorkflowNotFoundError(WorkflowException):
    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(
            message=f"Workflow '{workflow_id}' not found",
            error_code="WORKFLOW_NOT_FOUND",
            context={"workflow_id": workflow_id}
        )


class RunNotFoundError(WorkflowException):
    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(
            message=f"Run '{run_id}' not found",
            error_code="RUN_NOT_FOUND",
            context={"run_id": run_id}
        )


class WorkflowValidationError(WorkflowException):
    def __init__(self, issues: list[str]):
        self.issues = issues
        super().__init__(
            message="Workflow definition is not valid",
            error_code="WORKFLOW_VALIDATION_FAILED",
            context={"issues": issues}
        )


class CyclicDependencyError(WorkflowException):
    def __init__(self, cycle_nodes: list[str]):
        self.cycle_nodes = cycle_nodes
        super().__init__(
            message=f"Cycle detected involving nodes: {cycle_nodes}",
            error_code="CYCLIC_DEPENDENCY",
            context={"cycle_nodes": cycle_nodes}
        )


class InvalidNodeReferenceError(WorkflowException):
    def __init__(self, edge_id: str, missing_node: str):
        self.edge_id = edge_id
        self.missing_node = missing_node
        super().__init__(
            message=f"Edge '{edge_id}' references missing node '{missing_node}'",
            error_code="INVALID_NODE_REFERENCE",
            context={"edge_id": edge_id, "missing_node": missing_node}
        )


class DuplicateNodeIdError(WorkflowException):
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(
            message=f"Duplicate node ID detected: {node_id}",
            error_code="DUPLICATE_NODE_ID",
            context={"node_id": node_id}
        )


class InvalidStatusTransitionError(WorkflowException):
    def __init__(self, entity_id: str, from_status: str, to_status: str):
        super().__init__(
            message=f"Invalid status transition for '{entity_id}' from '{from_status}' to '{to_status}'",
            error_code="INVALID_STATUS_TRANSITION",
            context={"id": entity_id, "from_status": from_status, "to_status": to_status}
        )


class WorkflowNotActiveError(WorkflowException):
    def __init__(self, workflow_id: str, status: str):
        super().__init__(
            message=f"Workflow '{workflow_id}' is not active (status: {status})",
            error_code="WORKFLOW_NOT_ACTIVE",
            context={"workflow_id": workflow_id, "status": status}
        )
