"""Experiment endpoints.

Selection and recording handlers are plain functions so FastAPI runs each
request on its worker threadpool; the registry's per-arm locks do the rest.
"""

from fastapi import APIRouter, HTTPException

from bandit_api.exceptions import ConflictError, NotFoundError
from bandit_api.models.experiment import ArmResponse, ExperimentCreate, ExperimentResponse
from bandit_api.models.outcome import OutcomeRequest, OutcomeResponse
from bandit_api.models.stats import ExperimentStatsResponse
from bandit_api.services.experiment import ExperimentService, to_arm_response
from bandit_api.services.selection import SelectionService

router = APIRouter(prefix="/experiments", tags=["Experiments"])


@router.post(
    "",
    response_model=ExperimentResponse,
    status_code=201,
    summary="Create Experiment",
    description="Create a new experiment with a fixed set of arms",
)
def create_experiment(data: ExperimentCreate):
    """
    Create a new experiment with its arms.

    - Give either an explicit `arms` list or a `num_arms` count
    - Arm names must be unique within the experiment
    - Experiment names must be unique
    """
    try:
        return ExperimentService().create_experiment(data)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get(
    "",
    response_model=list[ExperimentResponse],
    summary="List Experiments",
    description="List all experiments, newest first",
)
def list_experiments():
    """List every experiment with its arms' current counters."""
    return ExperimentService().list_experiments()


@router.get(
    "/{experiment_id}",
    response_model=ExperimentResponse,
    summary="Get Experiment",
    description="Get experiment details by ID",
)
def get_experiment(experiment_id: str):
    """Get experiment details including all arms."""
    result = ExperimentService().get_experiment(experiment_id)
    if not result:
        raise HTTPException(status_code=404, detail="Experiment not found")
    return result


@router.get(
    "/{experiment_id}/arm",
    response_model=ArmResponse,
    summary="Get Next Arm",
    description="Select the arm to present next using Thompson Sampling",
)
def get_next_arm(experiment_id: str):
    """
    Select the next arm to present.

    Each arm's success probability is drawn from Beta(successes + 1,
    failures + 1) and the arm with the highest draw is returned. Arms that
    perform better are chosen more often while weaker or untried arms keep
    getting explored.
    """
    try:
        arm = SelectionService().get_next_arm(experiment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return to_arm_response(arm)


@router.post(
    "/{experiment_id}/arms/{arm_id}/result",
    response_model=OutcomeResponse,
    summary="Record Outcome",
    description="Record a success or failure for an arm",
)
def record_outcome(experiment_id: str, arm_id: str, data: OutcomeRequest):
    """
    Record the outcome of presenting an arm.

    Exactly one of the arm's counters is incremented; the response carries
    both counters as they were right after this increment.
    """
    try:
        successes, failures = SelectionService().record_outcome(
            arm_id, data.success, experiment_id=experiment_id
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return OutcomeResponse(arm_id=arm_id, successes=successes, failures=failures)


@router.get(
    "/{experiment_id}/arms",
    response_model=ExperimentStatsResponse,
    summary="Get Arm Statistics",
    description="Observed and posterior statistics for every arm",
)
def get_arm_stats(experiment_id: str):
    """
    Get per-arm statistics.

    Includes raw success rate, posterior mean, 95% credible interval and the
    Monte Carlo estimate of each arm's probability of being the best.
    """
    try:
        return ExperimentService().get_arm_stats(experiment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
