"""Qase API Client

Thin client for the Qase REST API v1:
- One ``requests`` session carrying the API token
- One method per entity/action
- Standardized error handling

Every method returns the decoded response body, shaped
``{"status": true, "result": ...}``.
"""

import logging
from typing import Optional, Any, Dict, List

import requests

from .utils.errors import handle_http_error

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.qase.io/v1"


def _query(**params: Any) -> Dict[str, Any]:
    """Drop unset query parameters."""
    return {key: value for key, value in params.items() if value is not None}


class QaseClient:
    """Qase REST API client authenticated with an API token.

    Constructed once at server startup and shared read-only by all tool
    invocations.
    """

    def __init__(
        self,
        api_token: str,
        api_url: str = DEFAULT_API_URL,
        session: Optional[requests.Session] = None
    ):
        """Initialize Qase client.

        Args:
            api_token: Qase API token
            api_url: API base URL (default: https://api.qase.io/v1)
            session: Optional pre-built session (used by tests)
        """
        self.api_url = api_url.rstrip('/')
        self.session = session or requests.Session()
        self.session.headers.update({
            'Token': api_token,
            'Accept': 'application/json',
            'Content-Type': 'application/json'
        })
        logger.info(f"Initialized Qase client for {self.api_url}")

    def close(self) -> None:
        self.session.close()

    def _make_request(self, method: str, endpoint: str, **kwargs) -> Any:
        """Make an HTTP request and decode the JSON body.

        Args:
            method: HTTP method
            endpoint: Path relative to the API base URL
            **kwargs: Passed through to ``requests.Session.request``

        Returns:
            Decoded response body, or None for an empty body

        Raises:
            QaseError: On HTTP error responses (with appropriate subclass)
            requests.exceptions.RequestException: On network failures
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        logger.debug(f"{method} {url} params={kwargs.get('params')}")

        response = self.session.request(method, url, **kwargs)
        if not response.ok:
            raise handle_http_error(response.status_code, response.text)

        if response.content:
            return response.json()
        return None

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def get_projects(self, limit: Optional[int] = None, offset: Optional[int] = None):
        """Get all projects."""
        return self._make_request('GET', 'project', params=_query(limit=limit, offset=offset))

    def get_project(self, code: str):
        """Get project by code."""
        return self._make_request('GET', f'project/{code}')

    def create_project(self, data: Dict[str, Any]):
        """Create new project."""
        return self._make_request('POST', 'project', json=data)

    # ------------------------------------------------------------------
    # Test cases
    # ------------------------------------------------------------------

    def get_cases(
        self,
        code: str,
        search: Optional[str] = None,
        milestone_id: Optional[int] = None,
        suite_id: Optional[int] = None,
        severity: Optional[str] = None,
        priority: Optional[str] = None,
        type: Optional[str] = None,
        behavior: Optional[str] = None,
        automation: Optional[str] = None,
        status: Optional[str] = None,
        external_issues_type: Optional[str] = None,
        external_issues_ids: Optional[List[str]] = None,
        include: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ):
        """Get test cases with filters."""
        params = _query(
            search=search,
            milestone_id=milestone_id,
            suite_id=suite_id,
            severity=severity,
            priority=priority,
            type=type,
            behavior=behavior,
            automation=automation,
            status=status,
            include=include,
            limit=limit,
            offset=offset,
        )
        if external_issues_type:
            params['external_issues[type]'] = external_issues_type
        if external_issues_ids:
            params['external_issues[ids][]'] = list(external_issues_ids)
        return self._make_request('GET', f'case/{code}', params=params)

    def get_case(self, code: str, case_id: int):
        """Get test case by ID."""
        return self._make_request('GET', f'case/{code}/{case_id}')

    def create_case(self, code: str, data: Dict[str, Any]):
        """Create test case."""
        return self._make_request('POST', f'case/{code}', json=data)

    def create_case_bulk(self, code: str, cases: List[Dict[str, Any]]):
        """Create several test cases in one request."""
        return self._make_request('POST', f'case/{code}/bulk', json={'cases': cases})

    def update_case(self, code: str, case_id: int, data: Dict[str, Any]):
        """Update test case (partial)."""
        return self._make_request('PATCH', f'case/{code}/{case_id}', json=data)

    def case_attach_external_issue(self, code: str, data: Dict[str, Any]):
        """Attach external issues (Jira, etc.) to test cases."""
        return self._make_request('POST', f'case/{code}/external-issue/attach', json=data)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def get_results(
        self,
        code: str,
        status: Optional[str] = None,
        run: Optional[str] = None,
        case_id: Optional[str] = None,
        member: Optional[str] = None,
        api: Optional[bool] = None,
        from_end_time: Optional[str] = None,
        to_end_time: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ):
        """Get test run results with filters."""
        params = _query(
            status=status,
            run=run,
            case_id=case_id,
            member=member,
            api=None if api is None else str(api).lower(),
            from_end_time=from_end_time,
            to_end_time=to_end_time,
            limit=limit,
            offset=offset,
        )
        return self._make_request('GET', f'result/{code}', params=params)

    def get_result(self, code: str, hash: str):
        """Get result by hash."""
        return self._make_request('GET', f'result/{code}/{hash}')

    def create_result(self, code: str, run_id: int, data: Dict[str, Any]):
        """Create result in a run."""
        return self._make_request('POST', f'result/{code}/{run_id}', json=data)

    def create_result_bulk(self, code: str, run_id: int, data: Dict[str, Any]):
        """Create several results in a run."""
        return self._make_request('POST', f'result/{code}/{run_id}/bulk', json=data)

    def update_result(self, code: str, run_id: int, hash: str, data: Dict[str, Any]):
        """Update result (partial)."""
        return self._make_request('PATCH', f'result/{code}/{run_id}/{hash}', json=data)

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def get_runs(
        self,
        code: str,
        search: Optional[str] = None,
        status: Optional[str] = None,
        milestone: Optional[int] = None,
        environment: Optional[int] = None,
        from_start_time: Optional[int] = None,
        to_start_time: Optional[int] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        include: Optional[str] = None
    ):
        """Get test runs with filters."""
        params = _query(
            search=search,
            status=status,
            milestone=milestone,
            environment=environment,
            from_start_time=from_start_time,
            to_start_time=to_start_time,
            limit=limit,
            offset=offset,
            include=include,
        )
        return self._make_request('GET', f'run/{code}', params=params)

    def get_run(self, code: str, run_id: int, include: Optional[str] = None):
        """Get test run by ID."""
        return self._make_request('GET', f'run/{code}/{run_id}', params=_query(include=include))

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    def get_plans(self, code: str, limit: Optional[int] = None, offset: Optional[int] = None):
        """Get test plans."""
        return self._make_request('GET', f'plan/{code}', params=_query(limit=limit, offset=offset))

    def get_plan(self, code: str, plan_id: int):
        """Get test plan by ID."""
        return self._make_request('GET', f'plan/{code}/{plan_id}')

    def create_plan(self, code: str, data: Dict[str, Any]):
        """Create test plan."""
        return self._make_request('POST', f'plan/{code}', json=data)

    def update_plan(self, code: str, plan_id: int, data: Dict[str, Any]):
        """Update test plan (partial)."""
        return self._make_request('PATCH', f'plan/{code}/{plan_id}', json=data)

    # ------------------------------------------------------------------
    # Suites
    # ------------------------------------------------------------------

    def get_suites(
        self,
        code: str,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ):
        """Get test suites."""
        params = _query(search=search, limit=limit, offset=offset)
        return self._make_request('GET', f'suite/{code}', params=params)

    def get_suite(self, code: str, suite_id: int):
        """Get test suite by ID."""
        return self._make_request('GET', f'suite/{code}/{suite_id}')

    def create_suite(self, code: str, data: Dict[str, Any]):
        """Create test suite."""
        return self._make_request('POST', f'suite/{code}', json=data)

    def update_suite(self, code: str, suite_id: int, data: Dict[str, Any]):
        """Update test suite (partial)."""
        return self._make_request('PATCH', f'suite/{code}/{suite_id}', json=data)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def get_shared_steps(
        self,
        code: str,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ):
        """Get shared steps."""
        params = _query(search=search, limit=limit, offset=offset)
        return self._make_request('GET', f'shared_step/{code}', params=params)

    def get_shared_step(self, code: str, hash: str):
        """Get shared step by hash."""
        return self._make_request('GET', f'shared_step/{code}/{hash}')

    def create_shared_step(self, code: str, data: Dict[str, Any]):
        """Create shared step."""
        return self._make_request('POST', f'shared_step/{code}', json=data)

    def update_shared_step(self, code: str, hash: str, data: Dict[str, Any]):
        """Update shared step (partial)."""
        return self._make_request('PATCH', f'shared_step/{code}/{hash}', json=data)

    # ------------------------------------------------------------------
    # Defects
    # ------------------------------------------------------------------

    def get_defects(
        self,
        code: str,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ):
        """Get defects."""
        params = _query(status=status, limit=limit, offset=offset)
        return self._make_request('GET', f'defect/{code}', params=params)

    def get_defect(self, code: str, defect_id: int):
        """Get defect by ID."""
        return self._make_request('GET', f'defect/{code}/{defect_id}')

    def create_defect(self, code: str, data: Dict[str, Any]):
        """Create defect."""
        return self._make_request('POST', f'defect/{code}', json=data)

    def update_defect(self, code: str, defect_id: int, data: Dict[str, Any]):
        """Update defect (partial)."""
        return self._make_request('PATCH', f'defect/{code}/{defect_id}', json=data)

    def delete_defect(self, code: str, defect_id: int):
        """Delete defect."""
        return self._make_request('DELETE', f'defect/{code}/{defect_id}')

    def resolve_defect(self, code: str, defect_id: int):
        """Mark defect as resolved."""
        return self._make_request('PATCH', f'defect/{code}/resolve/{defect_id}')

    def update_defect_status(self, code: str, defect_id: int, status: str):
        """Set defect status."""
        return self._make_request('PATCH', f'defect/{code}/status/{defect_id}', json={'status': status})

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, query: str, limit: Optional[int] = None, offset: Optional[int] = None):
        """Run a Qase Query Language (QQL) search."""
        params = _query(query=query, limit=limit, offset=offset)
        return self._make_request('GET', 'search', params=params)
