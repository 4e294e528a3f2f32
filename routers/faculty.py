import sqlite3
from typing import List

from fastapi import APIRouter, HTTPException, status

import database
from models.faculty import Faculty, FacultyCreate

router = APIRouter()


# ---------------------------------------------------------
# GET ALL FACULTY
# ---------------------------------------------------------
@router.get("/", response_model=List[Faculty])
def get_faculty_list():
    return database.list_faculty()


# ---------------------------------------------------------
# CREATE FACULTY
# ---------------------------------------------------------
@router.post("/", response_model=Faculty, status_code=status.HTTP_201_CREATED)
def create_faculty(faculty: FacultyCreate):
    try:
        return database.insert_faculty(faculty)
    except sqlite3.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Faculty '{faculty.name}' already exists."
        )


# ---------------------------------------------------------
# GET FACULTY BY ID
# ---------------------------------------------------------
@router.get("/{faculty_id}", response_model=Faculty)
def get_faculty(faculty_id: int):
    faculty = database.get_faculty(faculty_id)
    if faculty is None:
        raise HTTPException(status_code=404, detail="Faculty not found")
    return faculty


# ---------------------------------------------------------
# UPDATE FACULTY
# ---------------------------------------------------------
@router.put("/{faculty_id}", response_model=Faculty)
def update_faculty(faculty_id: int, faculty_data: FacultyCreate):
    try:
        faculty = database.update_faculty(faculty_id, faculty_data)
    except sqlite3.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Faculty '{faculty_data.name}' already exists."
        )

    if faculty is None:
        raise HTTPException(status_code=404, detail="Faculty not found")
    return faculty


# ---------------------------------------------------------
# DELETE FACULTY
# ---------------------------------------------------------
@router.delete("/{faculty_id}", response_model=dict)
def delete_faculty(faculty_id: int):
    if not database.delete_faculty(faculty_id):
        raise HTTPException(status_code=404, detail="Faculty not found")
    return {"message": "Faculty deleted successfully"}
