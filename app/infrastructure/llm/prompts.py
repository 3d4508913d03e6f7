from typing import Dict, List

from langchain_core.prompts import ChatPromptTemplate

from app.domain.analytics import AssistantContext
from app.domain.rounding import round_half_up

CHAT_FALLBACK_RESPONSE = (
    "I'm having trouble processing your request right now. Please try again."
)


TASK_PRIORITIZATION_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are an AI task prioritization assistant. Analyze tasks and assign priority "
            "scores (0-100) and emoji sentiments (😊 positive, 😐 neutral, 😟 concerning, "
            "🚨 urgent). Return JSON only.",
        ),
        ("human", "Prioritize these tasks and add emoji sentiments:\n{tasks}"),
    ]
)


STATUS_REPORT_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are an AI status report generator. Create comprehensive project status "
            "reports analyzing all aspects of the project.",
        ),
        (
            "human",
            """Generate a status report for this project:
Project: {project}
Tasks: {tasks}
Risks: {risks}
Milestones: {milestones}""",
        ),
    ]
)


RISK_FORECAST_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            """You are an AI Risk Assessment specialist for project management.
Analyze project data to identify potential risks before they materialize using pattern recognition.
Focus on:
1. Timeline risks (delays, dependencies)
2. Resource risks (capacity, skills)
3. Quality risks (testing, documentation)
4. Budget risks (cost overruns)
5. Communication risks (stakeholder alignment)

Provide early warning signals and preventive actions.""",
        ),
        (
            "human",
            """Analyze this project data and forecast potential risks:

Milestones:
{milestones}

Registered Risks:
{risks}

Documents Status:
{document_count} documents, {approved_documents} approved

Identify:
- Emerging risk patterns
- Probability of each risk (0-100%)
- Potential impact level
- Early warning signals
- Preventive actions""",
        ),
    ]
)


MILESTONE_FORECAST_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            """You are an AI Project Management Assistant specializing in milestone prediction and timeline forecasting.
Analyze project milestone data and predict completion dates based on:
1. Current progress and status
2. Historical patterns
3. Dependencies between milestones
4. Risk factors
5. Resource constraints

Provide realistic predictions with confidence scores and identify risk factors.""",
        ),
        (
            "human",
            """Analyze these project milestones and predict completion dates:

{milestones}

For each milestone, predict:
- Expected completion date
- Confidence score (0-100%)
- Risk factors that could cause delays
- Recommendations to stay on track""",
        ),
    ]
)


PORTFOLIO_INSIGHTS_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            """You are an AI Portfolio Management Assistant for a PMO managing 40+ IT projects.
Analyze the portfolio data and provide executive-level insights for CIO/CEO decision-making.

Focus on:
1. Portfolio health and overall trends
2. Critical attention areas requiring immediate action
3. Opportunities for optimization
4. Risk patterns across the portfolio
5. Resource utilization insights
6. Actionable recommendations with urgency levels

Be concise, data-driven, and actionable. Use specific project references where relevant.""",
        ),
        (
            "human",
            """Analyze the following portfolio data and generate executive insights:

{portfolio}

Provide a comprehensive analysis covering:
- Executive summary (2-3 sentences)
- Portfolio health score (0-100) with justification
- Count of projects requiring critical attention
- Key opportunities
- Top 3-5 recommended interventions with urgency levels
- Trend analysis (improving/declining/stable projects)""",
        ),
    ]
)


_CHAT_INSTRUCTIONS = """**Instructions:**
1. Provide data-driven insights based on the actual data above
2. Identify patterns, trends, and anomalies
3. Suggest concrete, actionable recommendations
4. Use specific numbers and percentages when relevant
5. Prioritize critical issues and risks
6. Be concise but thorough - aim for 3-5 key points
7. Format responses with bullet points for clarity
8. When asked about specific projects, tasks, or risks, reference the actual data
9. Provide context and explain WHY something is important

**Response Format:**
- Start with a brief summary (1-2 sentences)
- Use bullet points for key insights
- End with 1-2 actionable recommendations"""


def _section(title: str, lines: List[str]) -> str:
    if not lines:
        return ""
    return f"\n{title}:\n" + "\n".join(lines) + "\n"


def _owners(item: Dict) -> str:
    return ", ".join(item.get("owner") or [])


def build_chat_system_prompt(context: AssistantContext) -> str:
    s = context.summary
    task_pct = (
        round_half_up(s.completed_tasks / s.total_tasks * 100) if s.total_tasks else 0
    )

    critical = "".join(
        [
            _section(
                "Delayed Milestones",
                [f"- {m['name']} (due {m['target_date']})" for m in context.critical_milestones],
            ),
            _section(
                "Critical Risks",
                [
                    f"- {r['description']} ({r['severity']}/{r['status']})"
                    for r in context.critical_risks
                ],
            ),
            _section(
                "Overdue Tasks",
                [f"- {t['action']} (owner: {_owners(t)})" for t in context.overdue_tasks],
            ),
            _section(
                "Pending Documents",
                [f"- {d['name']} ({d['phase']}, {d['status']})" for d in context.pending_documents],
            ),
        ]
    )
    activity = _section(
        "Upcoming Milestones",
        [f"- {m['name']} ({m['target_date']})" for m in context.upcoming_milestones],
    )

    return f"""You are an AI project management assistant with deep analytical capabilities. You have access to comprehensive project data across tasks, milestones, risks, documents, ideas, and insights.

**Portfolio Summary:**
- Tasks: {s.completed_tasks}/{s.total_tasks} completed ({task_pct}%)
- Milestones: {s.completed_milestones}/{s.total_milestones} completed, {s.delayed_milestones} delayed
- Risks: {s.critical_risks} critical out of {s.total_risks} total
- Documents: {s.pending_documents} pending approval out of {s.total_documents}
- Ideas: {s.total_ideas} ideas tracked

**Critical Items Requiring Attention:**
{critical}
**Recent Activity:**
{activity}
{_CHAT_INSTRUCTIONS}"""
