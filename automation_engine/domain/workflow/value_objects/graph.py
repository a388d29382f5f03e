from dataclasses import dataclass, field

from automation_engine.domain.workflow.entities.workflow import Node, NodeType, WorkflowDefinition
from automation_engine.domain.workflow.exceptions import (
    CyclicDependencyError,
    DuplicateNodeIdError,
    InvalidNodeReferenceError,
)


@dataclass
class WorkflowGraph:
    """Adjacency view of a workflow definition, built once per run and cached."""

    nodes: dict[str, Node] = field(default_factory=dict)
    adjacency: dict[str, list[str]] = field(default_factory=dict)
    reverse_adjacency: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_definition(cls, definition: WorkflowDefinition) -> "WorkflowGraph":
        """Tolerant build: edges pointing at unknown nodes are dropped."""
        graph = cls()
        for node in definition.nodes:
            graph.nodes.setdefault(node.id, node)
            graph.adjacency.setdefault(node.id, [])
            graph.reverse_adjacency.setdefault(node.id, [])

        for edge in definition.edges:
            if edge.source not in graph.nodes or edge.target not in graph.nodes:
                continue
            if edge.target not in graph.adjacency[edge.source]:
                graph.adjacency[edge.source].append(edge.target)
                graph.reverse_adjacency[edge.target].append(edge.source)

        return graph

    @classmethod
    def validate_structure(cls, definition: WorkflowDefinition) -> "WorkflowGraph":
        """Strict build used at activation time: duplicates, dangling edges and cycles raise."""
        seen: set[str] = set()
        for node in definition.nodes:
            if node.id in seen:
                raise DuplicateNodeIdError(node.id)
            seen.add(node.id)

        for edge in definition.edges:
            for endpoint in (edge.source, edge.target):
                if endpoint not in seen:
                    raise InvalidNodeReferenceError(edge.id, endpoint)

        graph = cls.from_definition(definition)
        graph._detect_cycles()
        return graph

    def _detect_cycles(self) -> None:
        """Kahn's algorithm: iteratively remove zero in-degree nodes; remaining nodes form a cycle."""
        in_degree = {node_id: len(sources) for node_id, sources in self.reverse_adjacency.items()}

        queue = [node_id for node_id, degree in in_degree.items() if degree == 0]
        visited_count = 0

        while queue:
            current = queue.pop(0)
            visited_count += 1

            for neighbor in self.adjacency.get(current, []):
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        if visited_count != len(self.nodes):
            unvisited = [node_id for node_id in self.nodes if in_degree.get(node_id, 0) > 0]
            raise CyclicDependencyError(unvisited)

    def disconnected_nodes(self) -> list[str]:
        """
        Node ids that can never run: reached by no edge from a trigger, or, when the
        definition has more than one node, touched by no edge at all.
        """
        reached: set[str] = set()
        stack = [node_id for node_id, node in self.nodes.items() if node.type == NodeType.TRIGGER]
        while stack:
            current = stack.pop()
            if current in reached:
                continue
            reached.add(current)
            stack.extend(self.adjacency.get(current, []))

        multi_node = len(self.nodes) > 1
        return [
            node_id
            for node_id in self.nodes
            if node_id not in reached
            or (multi_node and not self.adjacency[node_id] and not self.reverse_adjacency[node_id])
        ]

    def get_node(self, node_id: str) -> Node | None:
        return self.nodes.get(node_id)

    def successors(self, node_id: str) -> list[Node]:
        return [self.nodes[target] for target in self.adjacency.get(node_id, [])]

    def is_terminal(self, node_id: str) -> bool:
        return not self.adjacency.get(node_id)
