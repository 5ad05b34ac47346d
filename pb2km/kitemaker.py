"""Kitemaker GraphQL developer API client."""

import httpx

from pb2km.models import Space
from pb2km.settings import ImporterSettings

_SPACE_BY_KEY = """
query Space($spaceKey: String!) {
  spaceByKey(key: $spaceKey) {
    id
    name
    statuses {
      id
      name
    }
  }
}
"""

_CREATE_WORK_ITEM = """
mutation CreateWorkItem(
  $spaceId: ID!
  $title: String!
  $description: String
  $statusId: ID!
  $createdAt: Date
  $updatedAt: Date
) {
  createWorkItem(input: {
    spaceId: $spaceId
    title: $title
    description: $description
    statusId: $statusId
    createdAt: $createdAt
    updatedAt: $updatedAt
  }) {
    workItem {
      id
    }
  }
}
"""

_CREATE_COMPANY = """
mutation CreateCompany($name: String!) {
  createCompany(input: { name: $name }) {
    company {
      id
    }
  }
}
"""

_CREATE_FEEDBACK = """
mutation CreateFeedback(
  $title: String!
  $content: String
  $companyId: ID
  $linkInsightToEntityIds: [ID!]
  $createdAt: Date
  $updatedAt: Date
) {
  createFeedback(input: {
    title: $title
    content: $content
    companyId: $companyId
    linkInsightToEntityIds: $linkInsightToEntityIds
    createdAt: $createdAt
    updatedAt: $updatedAt
  }) {
    feedback {
      id
    }
  }
}
"""


class KitemakerAPIError(RuntimeError):
    """GraphQL call that returned errors and no usable data."""

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class KitemakerClient:
    def __init__(self, settings: ImporterSettings) -> None:
        if not settings.token:
            raise RuntimeError("Kitemaker token is required")
        self._token = settings.token.get_secret_value()
        self._timeout = settings.timeout
        self.endpoint = settings.endpoint

    def _gql(self, query: str, variables: dict | None = None) -> dict:
        response = httpx.post(
            self.endpoint,
            json={"query": query, "variables": variables or {}},
            headers={
                "Authorization": f"Bearer {self._token}",
                "Content-Type": "application/json",
            },
            timeout=self._timeout,
        )
        if response.status_code == 401:
            raise KitemakerAPIError("Kitemaker API returned 401. Check KITEMAKER_TOKEN for the active profile.")

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            response.raise_for_status()
            raise KitemakerAPIError(f"Unexpected response from {self.endpoint}")

        # Partial data alongside errors is still usable
        errors = payload.get("errors") or []
        data = payload.get("data")
        if errors and not data:
            message = "; ".join(str(e.get("message", e)) for e in errors)
            raise KitemakerAPIError(message, errors)
        response.raise_for_status()
        return data or {}

    def get_space(self, key: str) -> Space | None:
        data = self._gql(_SPACE_BY_KEY, {"spaceKey": key})
        node = data.get("spaceByKey")
        if not node:
            return None
        return Space.model_validate(node)

    def create_work_item(
        self,
        space_id: str,
        title: str,
        description: str | None,
        status_id: str,
        created_at: str | None,
    ) -> str:
        data = self._gql(
            _CREATE_WORK_ITEM,
            {
                "spaceId": space_id,
                "title": title,
                "description": description,
                "statusId": status_id,
                "createdAt": created_at,
                "updatedAt": created_at,
            },
        )
        return data["createWorkItem"]["workItem"]["id"]

    def create_company(self, name: str) -> str:
        data = self._gql(_CREATE_COMPANY, {"name": name})
        return data["createCompany"]["company"]["id"]

    def create_feedback(
        self,
        title: str,
        content: str | None,
        company_id: str | None,
        link_insight_to_entity_ids: list[str],
        created_at: str | None,
    ) -> str:
        data = self._gql(
            _CREATE_FEEDBACK,
            {
                "title": title,
                "content": content,
                "companyId": company_id,
                "linkInsightToEntityIds": link_insight_to_entity_ids,
                "createdAt": created_at,
                "updatedAt": created_at,
            },
        )
        return data["createFeedback"]["feedback"]["id"]
