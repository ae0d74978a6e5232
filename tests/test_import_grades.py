from scripts.import_grades import import_grades

HEADER = "student_id,subject,quarter,written_work,performance_task,quarterly_assessment\n"


def write_csv(tmp_path, body):
    csv_file = tmp_path / "grades.csv"
    csv_file.write_text(HEADER + body, encoding="utf-8")
    return str(csv_file)


def test_import_derives_final_grades(tmp_path, store):
    path = write_csv(tmp_path, "s1,Science,1st,80,90,70\n" "s3,General Mathematics,2nd,,90,\n")

    written, rejects = import_grades(path, client=store)
    assert (written, rejects) == (2, [])

    science = store.select("grades", {"student_id": "s1", "subject": "Science"})[0]
    assert science["final_grade"] == 82.5
    assert science["remarks"] == "Satisfactory"
    partial = store.select("grades", {"student_id": "s3", "quarter": "2nd"})[0]
    assert partial["written_work"] is None
    assert partial["final_grade"] == 45.0


def test_import_checks_every_row_before_writing(tmp_path, store):
    path = write_csv(tmp_path, (
        "s1,Science,1st,80,90,70\n"          # line 2: ok
        "s1,Science,1st,85,85,85\n"          # line 3: repeats line 2
        "ghost,Science,1st,80,80,80\n"       # line 4: unknown student
        "s2,Science,1st,101,80,80\n"         # line 5: score out of range
        "s1,Math,1st,90,90,90\n"             # line 6: g1 already exists
        "s2,Science,5th,80,80,80\n"          # line 7: unknown quarter
        "s4,Science,1st,88,88,88\n"          # line 8: ok
    ))
    before = len(store.tables["grades"])

    written, rejects = import_grades(path, client=store)

    assert written == 2
    assert [line for line, _ in rejects] == [3, 4, 5, 6, 7]
    assert "unknown student" in rejects[1][1]
    assert len(store.tables["grades"]) == before + 2
    assert len(store.select("grades", {"student_id": "s1", "subject": "Science"})) == 1
    assert store.select("grades", {"student_id": "ghost"}) == []
    assert store.select("grades", {"id": "g1"})[0]["final_grade"] == 82.5


def test_import_with_only_bad_rows_writes_nothing(tmp_path, store):
    path = write_csv(tmp_path, "s1,Science,1st,abc,90,70\n")
    before = len(store.tables["grades"])

    written, rejects = import_grades(path, client=store)

    assert written == 0
    assert rejects[0][0] == 2
    assert len(store.tables["grades"]) == before
