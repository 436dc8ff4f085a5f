"""
WebSocket Routes for Real-time Execution Streaming.

Streams node progress while a workflow runs.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState
from uuid import uuid4
import logging

from nodeflow.engine.errors import EngineBusyError, ValidationError
from nodeflow.engine.executor import NodeEvent
from nodeflow.services import WorkflowService


logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


@router.websocket("/ws/run/{workflow_id}")
async def websocket_run(websocket: WebSocket, workflow_id: str):
    """
    WebSocket endpoint for real-time workflow execution.

    Connect to this endpoint and send the input data as JSON. Node events
    are pushed as each node starts and finishes.

    Message format (client -> server):
    ```json
    {"action": "start", "input_data": {"text": "..."}}
    ```

    Message format (server -> client):
    ```json
    {
        "type": "node_finished",
        "run_id": "...",
        "node_id": "llm-1",
        "status": "success",
        "result": {"nodeId": "llm-1", "executionTime": 1203, ...}
    }
    ```

    The last message carries the run outcome as its type: `completed`,
    `failed` or `cancelled`, and holds the full run result.
    """
    service: WorkflowService = websocket.app.state.service

    workflow = await service.get_workflow(workflow_id)
    if workflow is None:
        await websocket.close(code=4004, reason=f"Workflow '{workflow_id}' not found")
        return

    await websocket.accept()
    run_id = str(uuid4())
    logger.info(f"WebSocket connected for workflow: {workflow_id}")

    try:
        data = await websocket.receive_json()

        if data.get("action") != "start":
            await websocket.send_json({
                "type": "error",
                "error": "Expected 'start' action"
            })
            return

        await websocket.send_json({
            "type": "started",
            "run_id": run_id,
            "workflow_id": workflow_id,
        })

        async def on_event(event: NodeEvent):
            await websocket.send_json(event.to_dict())

        try:
            result = await service.run_workflow(
                workflow,
                data.get("input_data"),
                run_id=run_id,
                on_event=on_event,
            )
        except (EngineBusyError, ValidationError) as e:
            await websocket.send_json({
                "type": "error",
                "run_id": run_id,
                "error": str(e),
            })
            return

        await websocket.send_json({
            **result.to_dict(),
            "type": result.status.value,
            "workflow_id": workflow_id,
        })

    except WebSocketDisconnect:
        logger.info(f"Client disconnected from run {run_id}")
    except Exception as e:
        logger.exception(f"WebSocket error: {e}")
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.send_json({
                "type": "error",
                "error": str(e),
            })
    finally:
        logger.info(f"WebSocket closed for run: {run_id}")
