from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from safeorm.session import Session
from backend.models import Post, Tagging
from backend.deps import get_session

router = APIRouter()


class TagCreate(BaseModel):
    name: str


@router.post("/api/posts/{post_id}/tags", status_code=201)
def add_tag(post_id: int, payload: TagCreate, session: Session = Depends(get_session)):
    post = session.get(Post, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    tag = post.tags.create_or_fail(payload.model_dump())
    return {"tag_id": tag.id, "name": tag.name}


@router.get("/api/posts/{post_id}/tags")
def get_tags(post_id: int, session: Session = Depends(get_session)):
    post = session.get(Post, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    taggings = session.query(Tagging).filter(post_id=post_id).all()
    return [{"tag_id": t.tag.id, "name": t.tag.name} for t in taggings]
