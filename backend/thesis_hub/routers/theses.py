"""Thesis catalogue routes: plain CRUD plus substring search."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from thesis_hub.database import get_db
from thesis_hub.models.thesis import Thesis
from thesis_hub.schemas.thesis import ThesisCreate, ThesisOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ThesisOut, status_code=status.HTTP_201_CREATED)
def create_thesis(payload: ThesisCreate, db: Session = Depends(get_db)):
    thesis = Thesis(**payload.model_dump())
    db.add(thesis)
    db.commit()
    db.refresh(thesis)
    logger.info("Created thesis %s '%s'", thesis.thesis_id, thesis.title)
    return thesis


@router.get("/", response_model=list[ThesisOut])
def list_theses(
    q: Optional[str] = Query(None, description="Case-insensitive match on title or author"),
    college: Optional[str] = Query(None),
    batch: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """List theses with optional search and filters."""
    query = db.query(Thesis)
    if q:
        pattern = f"%{q}%"
        query = query.filter(or_(Thesis.title.ilike(pattern), Thesis.author.ilike(pattern)))
    if college:
        query = query.filter(Thesis.college_department == college)
    if batch:
        query = query.filter(Thesis.batch == batch)
    return query.order_by(Thesis.title).all()


@router.get("/{thesis_id}", response_model=ThesisOut)
def get_thesis(thesis_id: str, db: Session = Depends(get_db)):
    thesis = db.query(Thesis).filter(Thesis.thesis_id == thesis_id).first()
    if not thesis:
        raise HTTPException(status_code=404, detail="Thesis not found")
    return thesis
