"""L2-L4 idea evaluation rules.

Each evaluation returns the updated idea together with the history entry
(and, for L2, the review) that the caller persists.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.domain.entities import (
    EvaluationStage,
    Idea,
    IdeaReview,
    IdeaStageHistory,
    StageStatus,
)
from app.domain.exceptions import StageTransitionException
from app.domain.rounding import round_half_up

L2_PASS_SCORE = 3.0
L3_MIN_ROI = 20
STRONG_ROI = 50

L4Decision = Literal["approve", "on_hold", "reject"]


class L2Scores(BaseModel):
    novelty: float = Field(..., ge=1, le=5)
    feasibility: float = Field(..., ge=1, le=5)
    alignment: float = Field(..., ge=1, le=5)
    impact: float = Field(..., ge=1, le=5)

    def overall(self) -> float:
        mean = (self.novelty + self.feasibility + self.alignment + self.impact) / 4
        return round_half_up(mean, 2)


class BusinessCase(BaseModel):
    net_savings: float
    roi_percentage: float
    payback_period_months: float
    recommendation: Literal["strong", "moderate", "weak"]


class L3Assessment(BaseModel):
    estimated_cost: float = Field(..., ge=0)
    expected_savings: float = Field(..., ge=0)
    technical_feasibility: str = ""
    resource_requirements: str = ""
    timeline_estimate: str = ""
    risk_assessment: str = ""
    dependencies: str = ""
    comments: Optional[str] = None


class L4Review(BaseModel):
    decision: L4Decision
    strategic_fit_score: float = Field(default=3, ge=1, le=5)
    market_potential: str = ""
    competitive_advantage: str = ""
    approved_budget: float = 0
    conditions: Optional[str] = None
    comments: Optional[str] = None


class EvaluationOutcome(BaseModel):
    idea: Idea
    history: IdeaStageHistory
    review: Optional[IdeaReview] = None


def calculate_business_case(cost: float, savings: float) -> BusinessCase:
    roi = (savings - cost) / cost * 100 if cost > 0 else 0
    payback = cost / (savings / 12) if savings > 0 else 0
    # Thresholds apply to the ROI as displayed, one decimal place
    shown_roi = round_half_up(roi, 1)

    if shown_roi > STRONG_ROI:
        recommendation = "strong"
    elif shown_roi >= L3_MIN_ROI:
        recommendation = "moderate"
    else:
        recommendation = "weak"

    return BusinessCase(
        net_savings=savings - cost,
        roi_percentage=shown_roi,
        payback_period_months=round_half_up(payback, 1),
        recommendation=recommendation,
    )


def feasibility_score(roi_percentage: float) -> int:
    if roi_percentage >= STRONG_ROI:
        return 5
    if roi_percentage >= L3_MIN_ROI:
        return 3
    return 1


def can_access_l3(idea: Idea) -> bool:
    return (
        idea.evaluation_stage != EvaluationStage.L1
        and idea.stage_status == StageStatus.APPROVED
    )


def can_access_l4(idea: Idea) -> bool:
    return idea.evaluation_stage in {
        EvaluationStage.L3,
        EvaluationStage.L4,
        EvaluationStage.L5,
    } and (
        idea.stage_status == StageStatus.APPROVED
        or idea.l3_assessment_date is not None
    )


def evaluate_l2(
    idea: Idea,
    scores: L2Scores,
    reviewer: str,
    comments: Optional[str],
    now: datetime,
) -> EvaluationOutcome:
    overall = scores.overall()
    advance = overall >= L2_PASS_SCORE
    to_status = StageStatus.APPROVED if advance else StageStatus.REJECTED

    updated = idea.model_copy(
        update={
            "l2_novelty_score": scores.novelty,
            "l2_feasibility_score": scores.feasibility,
            "l2_alignment_score": scores.alignment,
            "l2_impact_score": scores.impact,
            "l2_overall_score": overall,
            "l2_screening_date": now,
            "l2_screened_by": reviewer,
            "l2_comments": comments,
            "stage_status": to_status,
            "updated_at": now,
        }
    )
    if advance:
        updated.evaluation_stage = EvaluationStage.L2
        updated.l1_completed_at = now

    review = IdeaReview(
        idea_id=idea.id,
        reviewer_name=reviewer,
        stage=EvaluationStage.L2,
        novelty_score=scores.novelty,
        feasibility_score=scores.feasibility,
        alignment_score=scores.alignment,
        impact_score=scores.impact,
        overall_score=overall,
        recommendation="approve" if advance else "reject",
        comments=comments,
        review_date=now,
    )

    verdict = "passed" if advance else "failed"
    history = IdeaStageHistory(
        idea_id=idea.id,
        from_stage=EvaluationStage.L1,
        to_stage=EvaluationStage.L2 if advance else EvaluationStage.L1,
        from_status=StageStatus.PENDING,
        to_status=to_status,
        changed_by=reviewer,
        change_reason=f"L2 screening {verdict} with score {overall:g}",
        created_at=now,
    )

    return EvaluationOutcome(idea=updated, history=history, review=review)


def evaluate_l3(
    idea: Idea, assessment: L3Assessment, assessor: str, now: datetime
) -> EvaluationOutcome:
    if not can_access_l3(idea):
        raise StageTransitionException(
            str(idea.id), "L3", "idea must have passed L2 screening"
        )

    case = calculate_business_case(assessment.estimated_cost, assessment.expected_savings)
    roi = case.roi_percentage
    advance = roi >= L3_MIN_ROI
    to_status = StageStatus.APPROVED if advance else StageStatus.REJECTED

    updated = idea.model_copy(
        update={
            "l3_technical_feasibility": assessment.technical_feasibility,
            "l3_resource_requirements": assessment.resource_requirements,
            "l3_timeline_estimate": assessment.timeline_estimate,
            "l3_risk_assessment": assessment.risk_assessment,
            "l3_dependencies": assessment.dependencies,
            "l3_feasibility_score": feasibility_score(roi),
            "l3_assessment_date": now,
            "l3_assessed_by": assessor,
            "l3_comments": assessment.comments,
            "l4_estimated_cost": assessment.estimated_cost,
            "l4_estimated_benefits": assessment.expected_savings,
            "l4_roi_percentage": roi,
            "l4_payback_period_months": round_half_up(case.payback_period_months),
            "l4_npv": case.net_savings,
            "stage_status": to_status,
            "updated_at": now,
        }
    )
    if advance:
        updated.evaluation_stage = EvaluationStage.L3
        updated.l2_completed_at = now

    reason = (
        f"L3 business case approved with ROI {roi:.1f}%"
        if advance
        else f"L3 business case rejected (ROI: {roi:.1f}%)"
    )
    history = IdeaStageHistory(
        idea_id=idea.id,
        from_stage=EvaluationStage.L2,
        to_stage=EvaluationStage.L3 if advance else EvaluationStage.L2,
        from_status=StageStatus.APPROVED,
        to_status=to_status,
        changed_by=assessor,
        change_reason=reason,
        created_at=now,
    )

    return EvaluationOutcome(idea=updated, history=history)


def evaluate_l4(
    idea: Idea, review: L4Review, approver: str, now: datetime
) -> EvaluationOutcome:
    if not can_access_l4(idea):
        raise StageTransitionException(
            str(idea.id), "L4", "idea needs a completed L3 business case"
        )

    approved = review.decision == "approve"
    if approved:
        to_status = StageStatus.APPROVED
        reason = f"Executive approval granted with budget ${review.approved_budget:,.0f}"
    elif review.decision == "on_hold":
        to_status = StageStatus.ON_HOLD
        reason = f"Placed on hold: {review.conditions or 'Pending further review'}"
    else:
        to_status = StageStatus.REJECTED
        reason = (
            f"Executive review rejected: {review.comments or 'Does not meet strategic criteria'}"
        )

    updated = idea.model_copy(
        update={
            "l4_strategic_fit_score": review.strategic_fit_score,
            "l4_market_potential": review.market_potential,
            "l4_competitive_advantage": review.competitive_advantage,
            "l4_approval_date": now,
            "l4_approved_by": approver,
            "l4_comments": review.comments,
            "stage_status": to_status,
            "updated_at": now,
        }
    )
    if approved:
        updated.evaluation_stage = EvaluationStage.L4
        updated.l3_completed_at = now

    history = IdeaStageHistory(
        idea_id=idea.id,
        from_stage=EvaluationStage.L3,
        to_stage=EvaluationStage.L4 if approved else EvaluationStage.L3,
        from_status=StageStatus.APPROVED,
        to_status=to_status,
        changed_by=approver,
        change_reason=reason,
        created_at=now,
    )

    return EvaluationOutcome(idea=updated, history=history)
