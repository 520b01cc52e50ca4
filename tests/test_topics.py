"""
Tests for topic breakdowns.
"""
from app.services.topic_service import TopicService, build_categories
from app.sources import ClassificationRow, SubtopicRecord, TopicRecord


class TestBuildCategories:

    def test_topics_without_questions_count_zero(self):
        topics = [
            TopicRecord(1, "Pharmacology", [SubtopicRecord(11, "Dosage")]),
            TopicRecord(2, "Safety", [SubtopicRecord(21, "Falls"), SubtopicRecord(22, "Restraints")]),
        ]
        rows = [ClassificationRow(1, 1, 11, False), ClassificationRow(2, 1, 11, True)]

        categories = build_categories(topics, rows)

        assert [(c.id, c.count, c.topic_count) for c in categories] == [(1, 2, 1), (2, 0, 2)]
        assert [s.count for s in categories[1].topics] == [0, 0]


class TestTopicBreakdown:

    async def test_sample_set_counts(self, source):
        breakdown = await TopicService(source).get_topic_breakdown()

        counts = {c.id: c.count for c in breakdown.topics}
        assert counts == {1: 4, 2: 4, 3: 2, 4: 2, 5: 2, 6: 1, 7: 2, 8: 2}

        standard = {c.id: c.count for c in breakdown.standard_topics}
        assert standard == {1: 4, 2: 3, 3: 1, 4: 0, 5: 1, 6: 1, 7: 2, 8: 1}

        assert breakdown.ngn.total == 6
        assert breakdown.ngn.by_topic == {2: 1, 3: 1, 4: 2, 5: 1, 8: 1}

    async def test_subtopic_counts(self, source):
        breakdown = await TopicService(source).get_topic_breakdown()
        topic_4 = next(c for c in breakdown.topics if c.id == 4)
        assert [(s.id, s.count) for s in topic_4.topics] == [(41, 1), (42, 1)]


class TestTopicEndpoint:

    async def test_requires_auth(self, client):
        response = await client.get("/api/v1/topics/breakdown")
        assert response.status_code == 401

    async def test_breakdown(self, client, auth_headers):
        response = await client.get("/api/v1/topics/breakdown", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert len(data["topics"]) == 8
        assert data["ngn"]["total"] == 6
        assert data["ngn"]["by_topic"] == {"2": 1, "3": 1, "4": 2, "5": 1, "8": 1}
