"""
Result Model Tests
"""
import pytest

from readable.models import (
    Mode,
    ReadingLevel,
    decode_answer,
    decode_dyslexia,
    decode_focus,
    decode_history,
    decode_lesson,
    decode_narration,
    decode_result,
)


class TestMode:
    """Test Mode parsing"""

    def test_parse(self):
        assert Mode.parse(' ADHD ') == Mode.ADHD
        assert Mode.parse('dyslexia') == Mode.DYSLEXIA
        assert Mode.parse('nope') is None
        assert Mode.parse(None) is None

    def test_reading_level_labels(self):
        assert ReadingLevel.SMALLEST.label == 'Most Simplified'
        assert ReadingLevel.MODERATE.description == 'Normal sentences'


class TestDyslexiaDecoder:
    """Test summary/rephrased decoding"""

    def test_needs_one_field(self):
        result, err = decode_dyslexia({'other': 1})
        assert result is None
        assert err

    def test_coerces_scalars(self):
        result, err = decode_dyslexia({'summary': ' A summary ', 'rephrased': None})
        assert err == ''
        assert result.summary == 'A summary'
        assert result.rephrased == ''

    def test_rejects_non_object(self):
        assert decode_dyslexia(['summary'])[0] is None


class TestBlindnessDecoders:
    """Test narration and answer decoding"""

    def test_narration_from_text(self):
        result, err = decode_narration('  Once upon a time.  ')
        assert result.narration == 'Once upon a time.'

    def test_narration_from_object(self):
        result, err = decode_narration({'narration': 'Hi'})
        assert result.to_dict() == {'narration': 'Hi'}

    def test_empty_answer_is_error(self):
        result, err = decode_answer('')
        assert result is None
        assert err == 'Answer is empty'

    def test_history_keeps_valid_turns(self):
        turns = decode_history([
            {'role': 'User', 'content': ' hi '},
            {'role': 'assistant', 'content': ''},
            {'role': 'system', 'content': 'x'},
            'junk',
            {'role': 'assistant', 'content': 'hello'},
        ])
        assert [t.to_dict() for t in turns] == [
            {'role': 'user', 'content': 'hi'},
            {'role': 'assistant', 'content': 'hello'},
        ]

    def test_history_not_a_list(self):
        assert decode_history({'role': 'user'}) == []


class TestLessonDecoder:
    """Test lesson decoding"""

    def test_decodes_full_lesson(self, lesson_payload):
        lesson, err = decode_lesson(lesson_payload)
        assert err == ''
        assert lesson.summary[0] == 'Plants make food from light.'
        assert lesson.vocabulary[1].example == ''
        assert lesson.questions.trueFalse.answer is True
        assert lesson.questions.mcq.answer == 'Green'
        assert lesson.questions.shortAnswer.rubric == ['mentions light']
        assert lesson.draw_it.labels == ['stem', 'vein']
        assert lesson.review_plan[0].minutes == 10
        assert lesson.is_last_section is False

    def test_wire_keys(self, lesson_payload):
        lesson, _ = decode_lesson(lesson_payload)
        data = lesson.to_dict()
        assert data['Draw-it']['title'] == 'A leaf'
        assert data['Questions']['shortAnswer']['idealAnswer'] == 'To catch light.'
        assert data['isLastSection'] is False

    def test_string_booleans(self, lesson_payload):
        lesson_payload['Questions']['trueFalse']['answer'] = 'false'
        lesson_payload['isLastSection'] = 'true'
        lesson, _ = decode_lesson(lesson_payload)
        assert lesson.questions.trueFalse.answer is False
        assert lesson.is_last_section is True

    def test_summary_required(self, lesson_payload):
        lesson_payload['Summary'] = []
        lesson, err = decode_lesson(lesson_payload)
        assert lesson is None
        assert err == 'Lesson has no Summary'

    def test_mcq_answer_must_be_an_option(self, lesson_payload):
        lesson_payload['Questions']['mcq']['answer'] = 'Purple'
        lesson, err = decode_lesson(lesson_payload)
        assert lesson is None
        assert 'not one of its options' in err

    def test_letter_beyond_options(self, lesson_payload):
        lesson_payload['Questions']['mcq']['answer'] = 'F'
        assert decode_lesson(lesson_payload)[0] is None

    def test_missing_question(self, lesson_payload):
        del lesson_payload['Questions']['shortAnswer']
        lesson, err = decode_lesson(lesson_payload)
        assert lesson is None
        assert 'short-answer' in err

    def test_optional_sections(self, lesson_payload):
        del lesson_payload['Draw-it']
        lesson_payload['Vocabulary'] = None
        lesson_payload['Review Plan'] = []
        lesson, err = decode_lesson(lesson_payload)
        assert err == ''
        assert lesson.draw_it is None
        assert lesson.vocabulary == []
        assert lesson.review_plan == []
        assert lesson.draw_it_speech() == ''

    @pytest.mark.parametrize('key, value, message', [
        ('Vocabulary', 3, 'Lesson Vocabulary is not a list'),
        ('Vocabulary', 'photosynthesis', 'Lesson Vocabulary is not a list'),
        ('Review Plan', 2, 'Lesson Review Plan is not a list'),
        ('Review Plan', {'when': 'Tomorrow'}, 'Lesson Review Plan is not a list'),
    ])
    def test_rejects_scalar_sections(self, lesson_payload, key, value, message):
        lesson_payload[key] = value
        lesson, err = decode_lesson(lesson_payload)
        assert lesson is None
        assert err == message

    def test_speech_text(self, lesson_payload):
        lesson, _ = decode_lesson(lesson_payload)
        assert lesson.summary_speech().startswith('Summary. Plants make food from light..')
        assert 'Example: No example.' in lesson.vocabulary_speech()
        assert 'Option B: Green.' in lesson.questions_speech()
        assert lesson.review_plan_speech() == 'Review plan. Tomorrow, 10 minutes. Re-read the summary.'


class TestFocusDecoder:
    """Test ADHD chunk decoding"""

    def test_drops_blank_chunks(self):
        result, err = decode_focus({'chunks': ['# A', '', 3, ' # B ']})
        assert result.chunks == ['# A', '# B']

    @pytest.mark.parametrize('obj', [None, {}, {'chunks': 'text'}, {'chunks': ['  ']}])
    def test_rejects_missing_chunks(self, obj):
        result, err = decode_focus(obj)
        assert result is None
        assert err

    def test_decode_result_dispatches_by_mode(self):
        result, err = decode_result(Mode.ADHD, {'chunks': ['x']})
        assert result.to_dict() == {'chunks': ['x']}
        result, err = decode_result(Mode.BLINDNESS, 'spoken')
        assert result.narration == 'spoken'
