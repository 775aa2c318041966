from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from safeorm.session import Session
from backend.models import Post
from backend.deps import get_session

router = APIRouter()


class PostCreate(BaseModel):
    title: str
    body: str | None = None


class CommentCreate(BaseModel):
    body: str
    author: str | None = None
    approved: bool | None = None


def _post_or_404(session, post_id):
    post = session.get(Post, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def _comment_to_dict(c):
    return {
        "comment_id": c.id,
        "post_id": c.post_id,
        "body": c.body,
        "author": c.author,
        "approved": c.approved,
    }


@router.post("/api/posts", status_code=201)
def add_post(payload: PostCreate, session: Session = Depends(get_session)):
    post = Post.new(payload.model_dump(exclude_unset=True))
    session.add(post)
    post.save_or_fail()
    return {"post_id": post.id, "title": post.title, "body": post.body}


@router.get("/api/posts")
def get_posts(session: Session = Depends(get_session)):
    return [
        {"post_id": p.id, "title": p.title, "body": p.body}
        for p in session.query(Post).all()
    ]


@router.get("/api/posts/{post_id}")
def get_post(post_id: int, session: Session = Depends(get_session)):
    post = _post_or_404(session, post_id)
    return {
        "post_id": post.id,
        "title": post.title,
        "body": post.body,
        "comments": [_comment_to_dict(c) for c in post.comments],
        "tags": [t.name for t in post.tags],
    }


@router.post("/api/posts/{post_id}/comments", status_code=201)
def add_comment(post_id: int, payload: CommentCreate, session: Session = Depends(get_session)):
    post = _post_or_404(session, post_id)
    comment = post.comments.create_or_fail(payload.model_dump(exclude_unset=True))
    return _comment_to_dict(comment)


@router.post("/api/admin/posts/{post_id}/comments", status_code=201)
def add_comment_as_admin(post_id: int, payload: CommentCreate, session: Session = Depends(get_session)):
    post = _post_or_404(session, post_id)
    comment = post.comments.create_or_fail(payload.model_dump(exclude_unset=True), role="admin")
    return _comment_to_dict(comment)
