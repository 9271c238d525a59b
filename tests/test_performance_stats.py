import pytest

from academics.stats import (
    calculate_average,
    calculate_trend,
    group_results_by_exam,
    calculate_subject_trends,
    calculate_overall_stats,
    generate_insights,
    prepare_chart_data,
    calculate_class_position,
    calculate_position_change,
)


EXAM_DATES = {
    "e1": ("Opener Exam", "2025-02-01"),
    "e2": ("Mid Term 1", "2025-04-01"),
    "e3": ("End Term 1", "2025-06-01"),
    "e4": ("Mid Term 2", "2025-08-01"),
}


def make_exam(exam_id):
    name, start_date = EXAM_DATES[exam_id]
    return {
        "id": exam_id,
        "exam_name": name,
        "class_name": "Form 4",
        "term": "1",
        "year": 2025,
        "start_date": start_date,
        "end_date": start_date,
        "status": None,
    }


def make_result(exam_id, subject, marks):
    return {
        "id": f"{exam_id}-{subject}",
        "exam_id": exam_id,
        "subject": subject,
        "marks": marks,
        "grade": None,
        "term": "1",
        "year": 2025,
        "created_at": "2025-01-01T00:00:00Z",
        "remarks": None,
    }


@pytest.fixture
def exams():
    # Deliberately out of chronological order
    return [make_exam("e3"), make_exam("e1"), make_exam("e4"), make_exam("e2")]


def single_subject_history(marks_by_exam):
    return [make_result(exam_id, "Mathematics", marks) for exam_id, marks in marks_by_exam]


class TestAveragesAndTrends:

    def test_calculate_average(self):
        assert calculate_average([]) == 0
        assert calculate_average([{"marks": 70}, {"marks": 65}, {"marks": 66}]) == 67.0
        assert calculate_average([{"marks": 1}, {"marks": 2}, {"marks": 2}]) == 1.67

    @pytest.mark.parametrize("previous,current,trend,percentage", [
        (50, 52, "improving", 4.0),
        (50, 51, "stable", 2.0),
        (50, 40, "declining", 20.0),
        (50, 48.9, "declining", 2.2),
        (0, 80, "stable", 0),
        (42.5, 62.5, "improving", 47.1),
    ])
    def test_calculate_trend(self, previous, current, trend, percentage):
        assert calculate_trend(previous, current) == {"trend": trend, "percentage": percentage}

    @pytest.mark.parametrize("value", [0.5, 50, 73.25, 100])
    def test_equal_averages_are_stable(self, value):
        assert calculate_trend(value, value) == {"trend": "stable", "percentage": 0}


def test_group_results_by_exam(exams):
    results = [
        make_result("e2", "Mathematics", 60),
        make_result("e1", "Mathematics", 50),
        make_result("e1", "English", 71),
        make_result("missing", "English", 99),
        {**make_result("e4", "English", 99), "exam_id": None},
    ]

    grouped = group_results_by_exam(results, exams)

    assert [exam["id"] for exam in grouped] == ["e1", "e2"]
    assert grouped[0]["average"] == 60.5
    assert len(grouped[0]["results"]) == 2
    assert grouped[1]["average"] == 60.0
    assert "results" not in exams[0]


def test_subject_trends(exams):
    results = [
        make_result("e2", "Mathematics", 60),
        make_result("e1", "Mathematics", 50),
        make_result("e1", "English", 80),
        make_result("e2", "English", 70),
        make_result("e1", "Physics", 55),
    ]

    trends = calculate_subject_trends(results, exams)

    assert [t["subject"] for t in trends] == ["English", "Mathematics", "Physics"]

    english, maths, physics = trends
    assert english["average_marks"] == 75.0
    assert english["trend"] == "declining"
    assert english["trend_percentage"] == 12.5
    assert maths["trend"] == "improving"
    assert maths["trend_percentage"] == 20.0
    assert maths["exam_scores"] == [
        {"exam_name": "Opener Exam", "marks": 50, "date": "2025-02-01"},
        {"exam_name": "Mid Term 1", "marks": 60, "date": "2025-04-01"},
    ]
    assert physics["trend"] == "stable"
    assert physics["trend_percentage"] == 0


def test_subject_trend_splits_odd_history_at_midpoint(exams):
    results = single_subject_history([("e1", 40), ("e2", 60), ("e3", 80)])

    trend = calculate_subject_trends(results, exams)[0]

    # [40] against [60, 80]
    assert trend["trend"] == "improving"
    assert trend["trend_percentage"] == 75.0


def test_overall_stats_prediction(exams):
    results = single_subject_history([("e1", 40), ("e2", 45), ("e3", 60), ("e4", 65)])

    stats = calculate_overall_stats(results, exams)

    assert stats == {
        "overall_average": 52.5,
        "best_subject": {"name": "Mathematics", "average": 52.5},
        "weakest_subject": None,
        "trend": "improving",
        "trend_percentage": 47.1,
        "total_exams": 4,
        "predicted_next_average": 88.6,
    }


def test_overall_stats_best_and_weakest(exams):
    results = [
        make_result("e1", "Mathematics", 40),
        make_result("e1", "English", 80),
    ]

    stats = calculate_overall_stats(results, exams)

    assert stats["best_subject"] == {"name": "English", "average": 80.0}
    assert stats["weakest_subject"] == {"name": "Mathematics", "average": 40.0}
    assert stats["total_exams"] == 1
    assert stats["trend"] == "stable"
    assert stats["predicted_next_average"] is None


def test_overall_stats_prediction_is_clamped(exams):
    rising = single_subject_history([("e1", 30), ("e2", 80), ("e3", 50)])
    falling = single_subject_history([("e1", 10), ("e2", 2)])

    assert calculate_overall_stats(rising, exams)["predicted_next_average"] == 100.0

    stats = calculate_overall_stats(falling, exams)
    assert stats["trend"] == "declining"
    assert stats["trend_percentage"] == 80.0
    assert stats["predicted_next_average"] == 0.0


def test_prediction_from_zero_last_exam_uses_overall_average(exams):
    results = single_subject_history([("e1", 20), ("e2", 60), ("e3", 0)])

    stats = calculate_overall_stats(results, exams)

    # [20] against [60, 0]: +50%, moved from the overall average of 26.67
    assert stats["trend"] == "improving"
    assert stats["trend_percentage"] == 50.0
    assert stats["overall_average"] == 26.67
    assert stats["predicted_next_average"] == 51.7


def test_overall_stats_without_results():
    assert calculate_overall_stats([], []) == {
        "overall_average": 0,
        "best_subject": None,
        "weakest_subject": None,
        "trend": "stable",
        "trend_percentage": 0,
        "total_exams": 0,
        "predicted_next_average": None,
    }


class TestInsights:

    def test_rule_order(self):
        stats = {
            "overall_average": 60,
            "best_subject": {"name": "English", "average": 82.0},
            "weakest_subject": {"name": "Physics", "average": 41.5},
            "trend": "improving",
            "trend_percentage": 12.5,
            "total_exams": 2,
            "predicted_next_average": 70.3,
        }
        subject_trends = [
            {"subject": "English", "average_marks": 82.0, "trend": "improving", "trend_percentage": 8.0},
            {"subject": "Mathematics", "average_marks": 60.0, "trend": "declining", "trend_percentage": 6.0},
            {"subject": "Chemistry", "average_marks": 55.0, "trend": "declining", "trend_percentage": 4.0},
            {"subject": "Physics", "average_marks": 41.5, "trend": "declining", "trend_percentage": 10.0},
            {"subject": "Biology", "average_marks": 50.0, "trend": "improving", "trend_percentage": 3.0},
        ]

        insights = generate_insights([], [], stats, subject_trends)

        assert [i["title"] for i in insights] == [
            "Performance Improving",
            "Strong Subject",
            "Subject Needs Focus",
            "Mathematics Declining",
            "Physics Declining",
            "Performance Prediction",
            "Subjects Improving",
        ]
        assert [i["type"] for i in insights] == [
            "positive", "positive", "warning", "warning", "warning", "prediction", "positive",
        ]
        assert insights[0]["message"] == (
            "Your performance has improved by 12.5% over recent exams. Keep up the great work!"
        )
        assert insights[1]["message"] == (
            "English is your strongest subject with an average of 82%. "
            "Consider pursuing related career paths."
        )
        assert insights[5]["message"] == (
            "Based on your current trajectory, your expected next exam average is 70.3%."
        )
        assert insights[6]["message"] == "Great progress in: English. Your effort is paying off!"

    def test_declining_overall(self):
        stats = {
            "overall_average": 60,
            "best_subject": None,
            "weakest_subject": None,
            "trend": "declining",
            "trend_percentage": 8.4,
            "total_exams": 2,
            "predicted_next_average": None,
        }

        insights = generate_insights([], [], stats, [])

        assert len(insights) == 1
        assert insights[0]["type"] == "warning"
        assert insights[0]["message"].startswith("Your marks have dropped by 8.4% recently.")

    def test_consistent_performance(self, exams):
        results = single_subject_history([("e1", 60), ("e2", 62), ("e3", 61)])
        stats = calculate_overall_stats(results, exams)
        trends = calculate_subject_trends(results, exams)

        insights = generate_insights(results, exams, stats, trends)

        assert stats["predicted_next_average"] == 62.3
        assert [i["title"] for i in insights] == [
            "Performance Improving",
            "Performance Prediction",
            "Consistent Performance",
        ]
        assert insights[-1]["type"] == "info"

    def test_inconsistent_results(self, exams):
        results = single_subject_history([("e1", 30), ("e2", 80), ("e3", 50)])
        stats = calculate_overall_stats(results, exams)
        trends = calculate_subject_trends(results, exams)

        insights = generate_insights(results, exams, stats, trends)

        assert [i["title"] for i in insights] == [
            "Performance Improving",
            "Performance Prediction",
            "Inconsistent Results",
            "Subjects Improving",
        ]
        assert insights[1]["message"].endswith("is 100%.")

    def test_zero_prediction_is_reported(self, exams):
        results = single_subject_history([("e1", 10), ("e2", 2)])
        stats = calculate_overall_stats(results, exams)

        insights = generate_insights(results, exams, stats, calculate_subject_trends(results, exams))

        prediction = [i for i in insights if i["type"] == "prediction"]
        assert prediction[0]["message"].endswith("is 0%.")

    def test_no_insights_without_results(self):
        stats = calculate_overall_stats([], [])
        assert generate_insights([], [], stats, []) == []


def test_prepare_chart_data(exams):
    results = [
        make_result("e1", "Mathematics", 50),
        make_result("e1", "English", 80),
        make_result("e2", "Mathematics", 0),
    ]
    grouped = group_results_by_exam(results, exams)
    trends = calculate_subject_trends(results, exams)

    chart = prepare_chart_data(grouped, trends)

    assert chart["subjects"] == ["English", "Mathematics"]
    assert chart["overall_data"] == [
        {"name": "Opener Exam", "average": 65.0, "date": "2025-02-01"},
        {"name": "Mid Term 1", "average": 0.0, "date": "2025-04-01"},
    ]
    assert chart["subject_data"] == [
        {"name": "Opener Exam", "date": "2025-02-01", "English": 80, "Mathematics": 50},
        {"name": "Mid Term 1", "date": "2025-04-01", "English": None, "Mathematics": 0},
    ]


def test_prepare_chart_data_limits_to_top_five_subjects(exams):
    subjects = ["Biology", "Chemistry", "English", "History", "Kiswahili", "Physics"]
    results = [
        make_result("e1", subject, 90 - index * 5) for index, subject in enumerate(subjects)
    ]

    chart = prepare_chart_data(
        group_results_by_exam(results, exams), calculate_subject_trends(results, exams)
    )

    assert chart["subjects"] == subjects[:5]
    assert "Physics" not in chart["subject_data"][0]


class TestClassPosition:
    class_results = [
        {"student_id": "s1", "marks": 70},
        {"student_id": "s2", "marks": 90},
        {"student_id": "s1", "marks": 80},
        {"student_id": "s2", "marks": 90},
        {"student_id": "s3", "marks": 60},
    ]

    def test_position(self):
        position = calculate_class_position(self.class_results, "s1", 2)
        assert position == {"position": 2, "total_students": 3, "class_average": 65.0}

    def test_student_without_results(self):
        assert calculate_class_position(self.class_results, "s9", 2)["position"] == 0
        assert calculate_class_position([], "s1", 0) == {
            "position": 0, "total_students": 0, "class_average": 0,
        }

    def test_position_change(self):
        previous = [{"student_id": "s1", "marks": 90}, {"student_id": "s2", "marks": 50}]
        assert calculate_position_change(previous, "s1", 2) == {
            "previous_position": 1, "position_diff": -1,
        }
        assert calculate_position_change(previous, "s2", 1) == {
            "previous_position": 2, "position_diff": 1,
        }

    def test_position_change_without_history(self):
        assert calculate_position_change([], "s1", 2) == {
            "previous_position": None, "position_diff": None,
        }
        previous = [{"student_id": "s2", "marks": 50}]
        assert calculate_position_change(previous, "s1", 2) == {
            "previous_position": None, "position_diff": None,
        }
