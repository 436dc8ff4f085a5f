"""
Graph validation and ordering for the Workflow Engine.

Given the nodes and edges of a workflow, these functions check that the
graph is well formed and derive the linear order in which its nodes are
dispatched.
"""

from collections import deque
from typing import Dict, List, Sequence

from nodeflow.engine.errors import ValidationError
from nodeflow.engine.models import Workflow, WorkflowEdge, WorkflowNode


def _kahn_order(node_ids: List[str], edges: Sequence[WorkflowEdge]) -> List[str]:
    """
    Kahn's algorithm over known node ids.

    The ready queue is seeded in node insertion order and successors are
    released in edge insertion order, so the order is reproducible.
    Edges pointing at unknown ids are ignored here.
    """
    in_degree: Dict[str, int] = {node_id: 0 for node_id in node_ids}
    successors: Dict[str, List[str]] = {node_id: [] for node_id in node_ids}

    for edge in edges:
        if edge.source not in in_degree or edge.target not in in_degree:
            continue
        successors[edge.source].append(edge.target)
        in_degree[edge.target] += 1

    queue = deque(node_id for node_id in node_ids if in_degree[node_id] == 0)
    order: List[str] = []

    while queue:
        current = queue.popleft()
        order.append(current)
        for successor in successors[current]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                queue.append(successor)

    return order


def graph_errors(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
) -> List[str]:
    """
    Validate the graph structure.

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    # Must have at least one node
    if not nodes:
        errors.append("Workflow must have at least one node")
        return errors

    node_ids: List[str] = []
    seen = set()
    for node in nodes:
        if node.id in seen:
            errors.append(f"Duplicate node id '{node.id}'")
            continue
        seen.add(node.id)
        node_ids.append(node.id)

    edge_ids = set()
    for edge in edges:
        if edge.id in edge_ids:
            errors.append(f"Duplicate edge id '{edge.id}'")
        edge_ids.add(edge.id)
        if edge.source not in seen:
            errors.append(f"Edge '{edge.id}' references unknown source node '{edge.source}'")
        if edge.target not in seen:
            errors.append(f"Edge '{edge.id}' references unknown target node '{edge.target}'")

    order = _kahn_order(node_ids, edges)
    if len(order) < len(node_ids):
        stuck = [node_id for node_id in node_ids if node_id not in set(order)]
        errors.append(f"Workflow contains a cycle involving nodes: {stuck}")

    return errors


def validate_graph(nodes: Sequence[WorkflowNode], edges: Sequence[WorkflowEdge]) -> None:
    """Raise ValidationError if the graph is empty, dangling or cyclic."""
    errors = graph_errors(nodes, edges)
    if errors:
        raise ValidationError(errors)


def resolve_execution_order(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
) -> List[str]:
    """
    Compute a dispatch order where every edge's source precedes its target.

    Disconnected nodes are included; unrelated branches keep the order in
    which their entry nodes were added to the graph.

    Raises:
        ValidationError: If the graph has a cycle
    """
    node_ids = [node.id for node in nodes]
    order = _kahn_order(node_ids, edges)
    if len(order) < len(node_ids):
        raise ValidationError(["Workflow contains a cycle"])
    return order


def find_entry_nodes(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
) -> List[WorkflowNode]:
    """Nodes with no incoming edges."""
    targets = {edge.target for edge in edges}
    return [node for node in nodes if node.id not in targets]


def predecessors(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
) -> Dict[str, List[str]]:
    """Map each node id to its direct upstream node ids, in edge order."""
    upstream: Dict[str, List[str]] = {node.id: [] for node in nodes}
    for edge in edges:
        if edge.target in upstream and edge.source not in upstream[edge.target]:
            upstream[edge.target].append(edge.source)
    return upstream


def to_mermaid(workflow: Workflow) -> str:
    """Generate a Mermaid diagram of the workflow."""
    lines = ["graph TD"]

    for node in workflow.nodes:
        label = node.label.replace('"', "'")
        lines.append(f'    {_mermaid_id(node.id)}["{label} ({node.kind})"]')

    for edge in workflow.edges:
        lines.append(f"    {_mermaid_id(edge.source)} --> {_mermaid_id(edge.target)}")

    return "\n".join(lines)


def _mermaid_id(node_id: str) -> str:
    return "".join(ch if ch.isalnum() or ch == "_" else "_" for ch in node_id)
