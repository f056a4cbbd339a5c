"""CLI script to load a question set from a JSON file into the configured store.
Usage: python scripts/import_questions.py questions.json [--dry-run]

The file holds either a list of questions or an object with a
`questions` list, in the same shape the admin API accepts.
"""
import sys
import argparse
import json
import pathlib
# Ensure `backend/` is on sys.path so `quiz_api` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from pydantic import TypeAdapter, ValidationError
from sqlmodel import Session
from typing import List
from quiz_api.config import settings
from quiz_api.database import engine, create_db_and_tables
from quiz_api.question_store import DatabaseQuestionStore, InMemoryQuestionStore, JsonFileQuestionStore
from quiz_api.schemas import QuestionIn
from quiz_api import services


def main(path: pathlib.Path, dry_run: bool = False) -> int:
    """Validate the file and replace the stored question set with it.

    With `dry_run` the questions are validated against an in-memory
    store and nothing is written. Returns a process exit code.
    """
    try:
        raw = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as e:
        print(f'Cannot read {path}: {e}')
        return 1
    items = raw.get('questions', []) if isinstance(raw, dict) else raw
    try:
        payload = TypeAdapter(List[QuestionIn]).validate_python(items)
    except ValidationError as e:
        print(f'Invalid question file: {e}')
        return 1
    if dry_run:
        store = InMemoryQuestionStore()
        try:
            questions = services.QuestionService(store).replace_all(payload)
        except services.InvalidQuestion as e:
            print(f'Invalid question: {e}')
            return 1
        print(f'{len(questions)} questions are valid (dry run, nothing written)')
        return 0
    if settings.QUESTION_STORE == 'memory':
        print('QUESTION_STORE=memory is not persistent; nothing to import into')
        return 1
    create_db_and_tables()
    with Session(engine) as session:
        if settings.QUESTION_STORE == 'file':
            store = JsonFileQuestionStore(settings.QUESTION_STORE_PATH)
        else:
            store = DatabaseQuestionStore(session)
        try:
            questions = services.QuestionService(store).replace_all(payload)
        except services.InvalidQuestion as e:
            print(f'Invalid question: {e}')
            return 1
    print(f'Imported {len(questions)} questions into the {settings.QUESTION_STORE} store')
    return 0

if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('path', type=pathlib.Path, help='JSON file with the question set')
    parser.add_argument('--dry-run', action='store_true', help='Validate only')
    args = parser.parse_args()
    sys.exit(main(args.path, dry_run=args.dry_run))
