# seed_data.py
# Демо-данные: администратор, комната, три судьи, два голосования

from extensions import db
from models import Admin, Event, Vote, Judge, VoteAssignment, JudgeSubmission, PublicSubmission
from models.judge import INVITE_CLAIMED
from utils import new_invite_token, new_voter_id


def seed():
    # --- 1. ОЧИСТКА ДАННЫХ ---
    print("Очистка старых данных...")
    # Идем в обратном порядке зависимостей
    db.session.query(JudgeSubmission).delete()
    db.session.query(PublicSubmission).delete()
    db.session.query(VoteAssignment).delete()
    db.session.query(Vote).delete()
    db.session.query(Judge).delete()
    db.session.query(Event).delete()
    db.session.query(Admin).delete()
    db.session.commit()
    print("Очистка завершена.")

    # --- 2. СОЗДАНИЕ ДАННЫХ ---
    print("Добавление тестовых данных...")
    try:
        admin = Admin(code='000001', university_name='Универсидад Демо')
        db.session.add(admin)
        db.session.commit()

        event = Event(name='Ярмарка проектов 2025', created_by=admin.id)
        db.session.add(event)

        # Первый судья уже принял приглашение, остальные ждут
        judges = [
            Judge(admin_id=admin.id, name='Судья 1', invite_token=new_invite_token(),
                  status=INVITE_CLAIMED, device_voter_id=new_voter_id()),
            Judge(admin_id=admin.id, name='Судья 2', invite_token=new_invite_token()),
            Judge(admin_id=admin.id, name='Судья 3', invite_token=new_invite_token()),
        ]
        db.session.add_all(judges)
        db.session.commit()

        for title, presenter in [('Робот-сортировщик', 'Ана Гарсия'), ('Солнечная печь', 'Луис Перес')]:
            vote = Vote(event_id=event.id, title=title, student_presenter=presenter, duration=120)
            vote.assignments = [VoteAssignment(judge_id=judge.id) for judge in judges]
            db.session.add(vote)
        db.session.commit()

        print("Тестовые данные успешно добавлены!")
        for judge in judges:
            print(f"  {judge.name}: /invite/{judge.invite_token}")
        return event
    except Exception as e:
        db.session.rollback()
        print(f"Произошла ошибка при добавлении данных: {e}")
        raise


if __name__ == '__main__':
    from app import create_app

    # Создаем экземпляр приложения, чтобы получить контекст
    app = create_app()
    with app.app_context():
        db.create_all()
        seed()
