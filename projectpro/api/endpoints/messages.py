"""
Messaging Endpoints

Direct, group and external conversations.

Access rule: every route below first loads the caller's participant
row; a conversation the caller does not take part in is reported as
not found.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from projectpro.database import get_db
from projectpro.models.user import TenantMembership
from projectpro.models.tenant import Tenant
from projectpro.models.messaging import Conversation, ConversationParticipant, Message, PREVIEW_LENGTH
from projectpro.schemas.messaging import (
    ConversationCreate,
    ConversationResponse,
    ConversationUpdate,
    MessageCreate,
    MessageUpdate,
    MessageResponse,
)
from projectpro.api.deps import get_current_membership, get_current_tenant, get_tenant_project, get_active_member
from projectpro.core.exceptions import NotFoundError, InvalidInputError, PermissionDenied
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/conversations", tags=["messages"])


def get_participation(db: Session, tenant_id: str, conversation_id: str, user_id: str) -> ConversationParticipant:
    """The caller's active participant row, or NotFoundError."""
    participant = db.query(ConversationParticipant).join(Conversation).filter(
        Conversation.id == conversation_id,
        Conversation.tenant_id == tenant_id,  # CRITICAL: Tenant isolation
        ConversationParticipant.user_id == user_id,
        ConversationParticipant.left_at == None  # noqa: E711
    ).first()
    if not participant:
        raise NotFoundError("Conversation", conversation_id)
    return participant


def to_response(conversation: Conversation, participant: ConversationParticipant) -> ConversationResponse:
    response = ConversationResponse.model_validate(conversation)
    response.unread_count = participant.unread_count
    return response


def refresh_preview(db: Session, conversation: Conversation) -> None:
    """Point the conversation preview at its newest message that is not deleted."""
    db.flush()
    latest = db.query(Message).filter(
        Message.conversation_id == conversation.id,
        Message.deleted_at == None  # noqa: E711
    ).order_by(Message.created_at.desc()).first()
    if latest is None:
        conversation.last_message_at = None
        conversation.last_message_preview = None
    else:
        conversation.last_message_at = latest.created_at
        conversation.last_message_preview = latest.content[:PREVIEW_LENGTH]


def find_direct_conversation(db: Session, tenant_id: str, user_a: str, user_b: str) -> Optional[Conversation]:
    """An existing direct conversation whose only users are user_a and user_b."""
    candidates = db.query(Conversation).join(ConversationParticipant).filter(
        Conversation.tenant_id == tenant_id,
        Conversation.type == "direct",
        ConversationParticipant.user_id == user_a
    ).all()
    for conversation in candidates:
        users = {p.user_id for p in conversation.participants if p.user_id}
        if users == {user_a, user_b}:
            return conversation
    return None


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    include_archived: bool = False,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Conversations the caller takes part in, most recent activity first."""
    query = db.query(Conversation, ConversationParticipant).join(ConversationParticipant).filter(
        Conversation.tenant_id == tenant.id,
        ConversationParticipant.user_id == current.user_id,
        ConversationParticipant.left_at == None  # noqa: E711
    )
    if not include_archived:
        query = query.filter(Conversation.is_archived == False)  # noqa: E712

    rows = query.order_by(func.coalesce(Conversation.last_message_at, Conversation.created_at).desc()).all()
    return [to_response(conversation, participant) for conversation, participant in rows]


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    data: ConversationCreate,
    request: Request,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Start a conversation.

    direct: exactly one other team member; an existing direct conversation
        between the same two people is returned instead of a new one
    group: any number of team members
    external: at least one external participant, addressed by email
    """
    member_ids = [user_id for user_id in dict.fromkeys(data.participant_ids) if user_id != current.user_id]
    externals = {p.email.lower(): p for p in data.external_participants}

    if data.type == "direct":
        if len(member_ids) != 1 or externals:
            raise InvalidInputError("A direct conversation needs exactly one other team member")
    if data.type == "external" and not externals:
        raise InvalidInputError("An external conversation needs at least one external participant")
    if data.type != "external" and externals:
        raise InvalidInputError("External participants are only allowed in external conversations")

    for user_id in member_ids:
        get_active_member(db, tenant.id, user_id)
    if data.project_id:
        get_tenant_project(db, tenant.id, data.project_id)

    if data.type == "direct":
        existing = find_direct_conversation(db, tenant.id, current.user_id, member_ids[0])
        if existing:
            participant = get_participation(db, tenant.id, existing.id, current.user_id)
            return to_response(existing, participant)

    conversation = Conversation(
        tenant_id=tenant.id,  # CRITICAL: Set tenant_id
        type=data.type,
        name=data.name,
        project_id=data.project_id,
        created_by=current.user_id,
    )
    owner = ConversationParticipant(tenant_id=tenant.id, user_id=current.user_id, role="owner")
    conversation.participants.append(owner)
    for user_id in member_ids:
        conversation.participants.append(
            ConversationParticipant(tenant_id=tenant.id, user_id=user_id, role="member")
        )
    for email, external in externals.items():
        conversation.participants.append(
            ConversationParticipant(tenant_id=tenant.id, external_email=email, external_name=external.name)
        )

    db.add(conversation)
    db.flush()
    log_activity(db, tenant.id, current.user_id, "created", "conversation", conversation.id,
                 conversation.name or conversation.type, request=request)
    db.commit()
    db.refresh(conversation)

    logger.info(
        f"Conversation created: {conversation.id} ({conversation.type}, "
        f"{len(conversation.participants)} participants) by {current.user_id}"
    )

    return to_response(conversation, owner)


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    participant = get_participation(db, tenant.id, conversation_id, current.user_id)
    return to_response(participant.conversation, participant)


@router.patch("/{conversation_id}", response_model=ConversationResponse)
async def update_conversation(
    conversation_id: str,
    data: ConversationUpdate,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Rename or archive. Any participant may do either."""
    participant = get_participation(db, tenant.id, conversation_id, current.user_id)
    conversation = participant.conversation

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(conversation, field, value)

    db.commit()
    db.refresh(conversation)

    return to_response(conversation, participant)


@router.post("/{conversation_id}/read", response_model=ConversationResponse)
async def mark_read(
    conversation_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    participant = get_participation(db, tenant.id, conversation_id, current.user_id)
    participant.unread_count = 0
    participant.last_read_at = datetime.utcnow()
    db.commit()
    db.refresh(participant)

    return to_response(participant.conversation, participant)


@router.post("/{conversation_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_conversation(
    conversation_id: str,
    request: Request,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Leave a group or external conversation.

    The participant row is kept with left_at set, so earlier messages keep
    their sender; the conversation disappears from the caller's list and
    stops counting unread messages for them.
    """
    participant = get_participation(db, tenant.id, conversation_id, current.user_id)
    conversation = participant.conversation
    if conversation.type == "direct":
        raise InvalidInputError("Direct conversations cannot be left; archive them instead")

    participant.left_at = datetime.utcnow()
    participant.unread_count = 0
    log_activity(db, tenant.id, current.user_id, "left", "conversation", conversation.id,
                 conversation.name or conversation.type, request=request)
    db.commit()

    active = sum(1 for p in conversation.participants if p.is_active)
    logger.info(f"User {current.user_id} left conversation {conversation.id} ({active} active participants)")
    return None


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: str,
    before: Optional[datetime] = None,
    limit: int = Query(50, ge=1, le=200),
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Messages oldest first.

    Pass the created_at of the oldest message already shown as `before`
    to page further back.
    """
    get_participation(db, tenant.id, conversation_id, current.user_id)

    query = db.query(Message).filter(
        Message.tenant_id == tenant.id,
        Message.conversation_id == conversation_id
    )
    if before:
        query = query.filter(Message.created_at < before)

    latest = query.order_by(Message.created_at.desc()).limit(limit).all()
    return list(reversed(latest))


@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def post_message(
    conversation_id: str,
    data: MessageCreate,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Post a message.

    Updates the conversation preview and bumps the unread count of every
    other active participant.
    """
    participant = get_participation(db, tenant.id, conversation_id, current.user_id)
    conversation = participant.conversation

    if data.reply_to_id:
        parent = db.query(Message.id).filter(
            Message.id == data.reply_to_id,
            Message.conversation_id == conversation.id
        ).first()
        if not parent:
            raise InvalidInputError("reply_to_id must reference a message in this conversation")

    message = Message(
        tenant_id=tenant.id,
        conversation_id=conversation.id,
        sender_id=current.user_id,
        content=data.content,
        message_type=data.message_type,
        attachments=data.attachments,
        reply_to_id=data.reply_to_id,
        created_at=datetime.utcnow(),
    )
    db.add(message)

    conversation.last_message_at = message.created_at
    conversation.last_message_preview = data.content[:PREVIEW_LENGTH]

    db.query(ConversationParticipant).filter(
        ConversationParticipant.conversation_id == conversation.id,
        ConversationParticipant.id != participant.id,
        ConversationParticipant.left_at == None  # noqa: E711
    ).update(
        {ConversationParticipant.unread_count: ConversationParticipant.unread_count + 1},
        synchronize_session=False
    )

    participant.last_read_at = message.created_at
    db.commit()
    db.refresh(message)

    return message


def get_own_message(db: Session, tenant_id: str, conversation_id: str, message_id: str,
                    user_id: str) -> Message:
    message = db.query(Message).filter(
        Message.id == message_id,
        Message.conversation_id == conversation_id,
        Message.tenant_id == tenant_id  # CRITICAL
    ).first()
    if not message or message.is_deleted:
        raise NotFoundError("Message", message_id)
    if message.sender_id != user_id:
        raise PermissionDenied("Only the sender can change this message")
    return message


@router.patch("/{conversation_id}/messages/{message_id}", response_model=MessageResponse)
async def edit_message(
    conversation_id: str,
    message_id: str,
    data: MessageUpdate,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    get_participation(db, tenant.id, conversation_id, current.user_id)
    message = get_own_message(db, tenant.id, conversation_id, message_id, current.user_id)

    message.content = data.content
    message.edited_at = datetime.utcnow()
    refresh_preview(db, message.conversation)
    db.commit()
    db.refresh(message)

    return message


@router.delete("/{conversation_id}/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    conversation_id: str,
    message_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Soft delete: the message stays in the thread with its content cleared."""
    get_participation(db, tenant.id, conversation_id, current.user_id)
    message = get_own_message(db, tenant.id, conversation_id, message_id, current.user_id)

    message.deleted_at = datetime.utcnow()
    message.content = ""
    message.attachments = []
    refresh_preview(db, message.conversation)
    db.commit()

    logger.info(f"Message deleted: {message_id} by {current.user_id}")
    return None
