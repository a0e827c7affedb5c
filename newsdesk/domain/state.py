"""
Article lifecycle table.

    draft --submit--> submitted --approve--> approved --publish--> published
                      under_review --reject--> rejected

Admin-equivalent callers may publish from any state. Rejected articles are
not resubmitted; they can only be changed by an admin-equivalent caller.
"""

from enum import Enum

from newsdesk.domain.entities import ArticleStatus


class ArticleAction(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    PUBLISH = "publish"


REVIEWABLE: frozenset[ArticleStatus] = frozenset(
    {ArticleStatus.SUBMITTED, ArticleStatus.UNDER_REVIEW}
)

# States in which the author (without admin rights) may still edit.
AUTHOR_EDITABLE: frozenset[ArticleStatus] = frozenset(
    {ArticleStatus.DRAFT, ArticleStatus.SUBMITTED}
)

# action -> (allowed source states for a non-privileged caller, target state)
TRANSITIONS: dict[ArticleAction, tuple[frozenset[ArticleStatus], ArticleStatus]] = {
    ArticleAction.SUBMIT: (frozenset({ArticleStatus.DRAFT}), ArticleStatus.SUBMITTED),
    ArticleAction.APPROVE: (REVIEWABLE, ArticleStatus.APPROVED),
    ArticleAction.REJECT: (REVIEWABLE, ArticleStatus.REJECTED),
    ArticleAction.PUBLISH: (frozenset({ArticleStatus.APPROVED}), ArticleStatus.PUBLISHED),
}

# Actions whose source-state check is waived for admin-equivalent callers.
PRIVILEGED_ANY_STATE: frozenset[ArticleAction] = frozenset({ArticleAction.PUBLISH})


def target_status(action: ArticleAction) -> ArticleStatus:
    return TRANSITIONS[action][1]


def can_transition(
    current: ArticleStatus, action: ArticleAction, privileged: bool = False
) -> bool:
    if privileged and action in PRIVILEGED_ANY_STATE:
        return True
    sources, _ = TRANSITIONS[action]
    return current in sources
