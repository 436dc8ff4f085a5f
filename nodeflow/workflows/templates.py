"""
Example Workflow Templates.

Ready-made pipelines that show how the node kinds combine. Each template
is a linear chain:

    input -> (research) -> llm -> structured -> output

Templates are seeded into workflow storage at startup so they can be run
or exported straight away.
"""

from typing import Any, Dict, List, Optional, Tuple
import logging

from nodeflow.engine.models import NodeKind, Workflow, WorkflowEdge, WorkflowNode


logger = logging.getLogger(__name__)


# (node id, kind, label, config)
StepDef = Tuple[str, NodeKind, str, Dict[str, Any]]


def _chain(
    workflow_id: str,
    name: str,
    description: str,
    steps: List[StepDef],
    row: int = 1,
) -> Workflow:
    """Build a linear workflow, laying nodes out left to right."""
    nodes = [
        WorkflowNode.create(node_id, kind, config, label=label, x=100 + 200 * i, y=100 * row)
        for i, (node_id, kind, label, config) in enumerate(steps)
    ]
    edges = [
        WorkflowEdge.connect(source.id, target.id, edge_id=f"e{i + 1}-{i + 2}")
        for i, (source, target) in enumerate(zip(nodes, nodes[1:]))
    ]
    return Workflow(id=workflow_id, name=name, description=description, nodes=nodes, edges=edges)


def _output(node_id: str, label: str, fmt: str, filename: str) -> StepDef:
    return (node_id, NodeKind.DATA_OUTPUT, label, {
        "outputFormat": fmt,
        "filename": filename,
        "includeMetadata": True,
    })


def create_templates() -> List[Workflow]:
    """Build fresh copies of every example workflow."""
    return [
        _chain(
            "content-marketing-automation",
            "Content Marketing Automation",
            "Research a topic, generate content and format it for publishing",
            [
                ("input-1", NodeKind.DATA_INPUT, "Topic Input", {
                    "inputType": "text",
                    "placeholder": 'Enter your content topic (e.g., "AI trends 2024")',
                    "required": True,
                }),
                ("web-scrape-1", NodeKind.WEB_SCRAPING, "Research Topic", {
                    "url": "https://news.google.com/search?q={{topic}}",
                    "maxLength": 1000,
                    "includeImages": False,
                }),
                ("llm-1", NodeKind.LLM_TASK, "Generate Content", {
                    "prompt": "Create an engaging blog post based on this research: {{research_data}}. "
                              "Include headlines, key points and a conclusion.",
                    "model": "gpt-4",
                    "temperature": 0.7,
                    "maxTokens": 2000,
                }),
                ("structured-1", NodeKind.STRUCTURED_OUTPUT, "Format Content", {
                    "schema": '{"title": "string", "introduction": "string", "main_points": ["string"], '
                              '"conclusion": "string", "tags": ["string"]}',
                    "model": "gpt-3.5-turbo",
                    "temperature": 0.3,
                }),
                _output("output-1", "Export Content", "markdown", "content-{{timestamp}}.md"),
            ],
            row=1,
        ),
        _chain(
            "customer-support-automation",
            "Smart Customer Support",
            "Categorize support tickets and draft personalized responses",
            [
                ("input-2", NodeKind.DATA_INPUT, "Support Ticket", {
                    "inputType": "text",
                    "placeholder": "Paste customer support ticket here...",
                    "required": True,
                }),
                ("llm-2", NodeKind.LLM_TASK, "Analyze Ticket", {
                    "prompt": "Analyze this support ticket: urgency (low/medium/high), category "
                              "(billing/technical/general) and sentiment. Ticket: {{ticket_content}}",
                    "model": "gpt-4",
                    "temperature": 0.3,
                    "maxTokens": 500,
                }),
                ("structured-2", NodeKind.STRUCTURED_OUTPUT, "Extract Details", {
                    "schema": '{"urgency": "string", "category": "string", "sentiment": "string", '
                              '"key_issues": ["string"], "suggested_response_type": "string"}',
                    "model": "gpt-3.5-turbo",
                    "temperature": 0.1,
                }),
                ("llm-3", NodeKind.LLM_TASK, "Generate Response", {
                    "prompt": "Generate a professional, empathetic support response based on this "
                              "analysis: {{analysis}}",
                    "model": "gpt-4",
                    "temperature": 0.7,
                    "maxTokens": 300,
                }),
                _output("output-2", "Support Response", "text", "support-response-{{timestamp}}.txt"),
            ],
            row=2,
        ),
        _chain(
            "data-analysis-automation",
            "Automated Data Analysis",
            "Analyze a dataset for patterns and produce a written report",
            [
                ("input-3", NodeKind.DATA_INPUT, "Data Upload", {
                    "inputType": "file",
                    "placeholder": "Upload CSV, JSON, or paste data here",
                    "required": True,
                }),
                ("llm-4", NodeKind.LLM_TASK, "Data Understanding", {
                    "prompt": "Analyze this dataset. Identify patterns, trends, outliers and key "
                              "metrics. Data: {{data_input}}",
                    "model": "gpt-4",
                    "temperature": 0.3,
                    "maxTokens": 1500,
                }),
                ("structured-3", NodeKind.STRUCTURED_OUTPUT, "Extract Insights", {
                    "schema": '{"summary": "string", "key_metrics": ["string"], "trends": ["string"], '
                              '"outliers": ["string"], "recommendations": ["string"]}',
                    "model": "gpt-3.5-turbo",
                    "temperature": 0.2,
                }),
                ("llm-5", NodeKind.LLM_TASK, "Generate Report", {
                    "prompt": "Create a data analysis report from these insights: {{insights}}. "
                              "Include an executive summary and recommendations.",
                    "model": "gpt-4",
                    "temperature": 0.5,
                    "maxTokens": 2000,
                }),
                _output("output-3", "Analysis Report", "markdown", "data-analysis-{{timestamp}}.md"),
            ],
            row=3,
        ),
        _chain(
            "social-media-automation",
            "Social Media Content Creator",
            "Research trends and write platform-specific social posts",
            [
                ("input-4", NodeKind.DATA_INPUT, "Content Brief", {
                    "inputType": "text",
                    "placeholder": "Describe what you want to post about",
                    "required": True,
                }),
                ("web-scrape-2", NodeKind.WEB_SCRAPING, "Trend Research", {
                    "url": "https://trends.google.com/trends/explore?q={{topic}}",
                    "maxLength": 500,
                    "includeImages": False,
                }),
                ("llm-6", NodeKind.LLM_TASK, "Create Posts", {
                    "prompt": "Create social media posts for Twitter, LinkedIn and Instagram based on "
                              "this brief: {{brief}} and trends: {{trends}}.",
                    "model": "gpt-4",
                    "temperature": 0.8,
                    "maxTokens": 1000,
                }),
                ("structured-4", NodeKind.STRUCTURED_OUTPUT, "Format Posts", {
                    "schema": '{"twitter": {"content": "string", "hashtags": ["string"]}, '
                              '"linkedin": {"content": "string", "hashtags": ["string"]}, '
                              '"instagram": {"content": "string", "hashtags": ["string"]}}',
                    "model": "gpt-3.5-turbo",
                    "temperature": 0.4,
                }),
                _output("output-4", "Social Media Kit", "json", "social-posts-{{timestamp}}.json"),
            ],
            row=4,
        ),
        _chain(
            "email-automation",
            "Smart Email Campaign",
            "Write subject lines and body copy for an email campaign",
            [
                ("input-5", NodeKind.DATA_INPUT, "Campaign Goals", {
                    "inputType": "text",
                    "placeholder": "Describe your email campaign goals",
                    "required": True,
                }),
                ("llm-7", NodeKind.LLM_TASK, "Generate Subject Lines", {
                    "prompt": "Generate 5 email subject lines for this campaign: {{goals}}.",
                    "model": "gpt-4",
                    "temperature": 0.7,
                    "maxTokens": 300,
                }),
                ("llm-8", NodeKind.LLM_TASK, "Create Email Content", {
                    "prompt": "Create email content for this campaign: {{goals}}. Include a clear "
                              "call to action.",
                    "model": "gpt-4",
                    "temperature": 0.6,
                    "maxTokens": 800,
                }),
                ("structured-5", NodeKind.STRUCTURED_OUTPUT, "Campaign Package", {
                    "schema": '{"subject_lines": ["string"], "email_content": "string", '
                              '"call_to_action": "string", "send_time_recommendation": "string"}',
                    "model": "gpt-3.5-turbo",
                    "temperature": 0.3,
                }),
                _output("output-5", "Email Campaign", "json", "email-campaign-{{timestamp}}.json"),
            ],
            row=5,
        ),
        _chain(
            "lead-qualification",
            "AI Lead Qualification",
            "Research a lead's company and score it against BANT criteria",
            [
                ("input-6", NodeKind.DATA_INPUT, "Lead Information", {
                    "inputType": "text",
                    "placeholder": "Paste lead information (company, role, industry, etc.)",
                    "required": True,
                }),
                ("web-scrape-3", NodeKind.WEB_SCRAPING, "Company Research", {
                    "url": "https://www.linkedin.com/company/{{company_name}}",
                    "maxLength": 800,
                    "includeImages": False,
                }),
                ("llm-9", NodeKind.LLM_TASK, "Qualify Lead", {
                    "prompt": "Analyze this lead and company data against BANT criteria. "
                              "Lead: {{lead_info}}, Company: {{company_data}}",
                    "model": "gpt-4",
                    "temperature": 0.3,
                    "maxTokens": 600,
                }),
                ("structured-6", NodeKind.STRUCTURED_OUTPUT, "Lead Score", {
                    "schema": '{"qualification_score": "number", "bant_score": {"budget": "number", '
                              '"authority": "number", "need": "number", "timeline": "number"}, '
                              '"next_steps": "string"}',
                    "model": "gpt-3.5-turbo",
                    "temperature": 0.2,
                }),
                _output("output-6", "Qualification Report", "json", "lead-qualification-{{timestamp}}.json"),
            ],
            row=6,
        ),
    ]


def get_template(template_id: str) -> Optional[Workflow]:
    """Get a fresh copy of a template by id."""
    for template in create_templates():
        if template.id == template_id:
            return template
    return None


async def register_templates(storage) -> List[Workflow]:
    """
    Save every template into workflow storage.

    This makes the examples available via the API without creating
    them first.
    """
    templates = create_templates()
    for template in templates:
        await storage.save(template)
    logger.info(f"Registered {len(templates)} workflow templates")
    return templates
