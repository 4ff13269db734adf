"""Read-back of stored submissions."""

from typing import List

from formrecords.storage import StorageBackend
from formrecords.types import Submission


class QueryService:
    """Reads submissions by id or by owning form.

    Lookups by id fail with NotFoundError for unknown ids, while listing by
    form returns an empty list for an unknown form id; the form's existence
    is not checked.
    """

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    def get_by_id(self, submission_id: str) -> Submission:
        """Return a submission with its full answer sequence.

        Raises:
            NotFoundError: If no submission with that id exists
        """
        return self.storage.get_submission(submission_id)

    def list_by_form(self, form_id: str) -> List[Submission]:
        """Return all submissions of a form in creation order."""
        return self.storage.list_submissions(form_id)


__all__ = ["QueryService"]
