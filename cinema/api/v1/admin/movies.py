from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cinema.db.session import get_db
from cinema.models.movie import Movie
from cinema.schemas.movie import Movie as MovieSchema, MovieCreate

router = APIRouter(prefix="/admin/movies", tags=["Admin - Movies"])


@router.post("/", response_model=MovieSchema, status_code=status.HTTP_201_CREATED)
def create_movie(data: MovieCreate, db: Session = Depends(get_db)):
    movie = Movie(**data.model_dump())
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


@router.get("/", response_model=List[MovieSchema])
def list_movies(db: Session = Depends(get_db)):
    return db.query(Movie).filter(Movie.is_active == True).order_by(Movie.title).all()  # noqa: E712
