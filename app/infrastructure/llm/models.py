from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

ImpactLevel = Literal["low", "medium", "high", "critical"]
Urgency = Literal["immediate", "this_week", "this_month"]


class TaskPriority(BaseModel):
    id: str
    priority_score: float = Field(..., description="0-100")
    sentiment: str = Field(
        ..., description="😊 positive, 😐 neutral, 😟 concerning or 🚨 urgent"
    )


class TaskPrioritization(BaseModel):
    """Assign priority scores and emoji sentiments to tasks"""

    prioritized_tasks: List[TaskPriority] = Field(default_factory=list)


class StatusReport(BaseModel):
    """Generate a comprehensive status report"""

    summary: str
    accomplishments: str = ""
    challenges: str = ""
    next_steps: str = ""
    recommendations: str = ""


class PredictedRisk(BaseModel):
    risk_category: str
    risk_description: str
    probability: float = Field(..., description="0-100")
    potential_impact: ImpactLevel
    early_warning_signals: List[str] = Field(default_factory=list)
    preventive_actions: List[str] = Field(default_factory=list)
    similar_past_incidents: List[str] = Field(default_factory=list)


class RiskForecast(BaseModel):
    """Forecast potential project risks with preventive actions"""

    predicted_risks: List[PredictedRisk]
    portfolio_risk_score: float = Field(..., description="Overall risk score 0-100")
    trending_risk_areas: List[str] = Field(default_factory=list)


class MilestonePrediction(BaseModel):
    milestone_id: str
    milestone_name: str
    original_target: Optional[str] = None
    predicted_completion: str
    confidence_score: float = Field(..., description="0-100")
    risk_factors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class MilestoneForecast(BaseModel):
    """Predict milestone completion dates and assess risks"""

    predictions: List[MilestonePrediction]
    overall_timeline_risk: ImpactLevel
    suggested_actions: List[str] = Field(default_factory=list)


class CriticalProject(BaseModel):
    project_id: str
    reason: str
    urgency: Urgency


class Intervention(BaseModel):
    action: str
    expected_impact: str
    urgency: Urgency
    affected_projects: List[str] = Field(default_factory=list)


class PortfolioInsights(BaseModel):
    """Generate comprehensive portfolio insights for executive decision-making"""

    executive_summary: str = Field(..., description="Brief 2-3 sentence summary")
    portfolio_health_score: float = Field(..., description="Score from 0-100")
    health_justification: Optional[str] = Field(default=None, description="Why this score?")
    critical_attention_count: int = Field(
        ..., description="Number of projects needing immediate attention"
    )
    critical_projects: List[CriticalProject] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)
    recommended_interventions: List[Intervention]
    trend_analysis: Dict[str, List[str]] = Field(
        default_factory=dict, description="improving, declining and stable project ids"
    )
