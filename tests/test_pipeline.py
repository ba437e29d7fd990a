"""End-to-end tests for the analysis and tuning passes on real WAV files."""

import numpy as np
import pytest
import soundfile as sf

from note_tuner.analysis import AnalysisConfig
from note_tuner.core import (
    EmptyAudioError,
    FileOpenError,
    PartialIOError,
    UnsupportedFormatError,
)
from note_tuner.input import AudioSource
from note_tuner.output import AudioSink
from note_tuner.pipeline import analyze_file, output_path_for, run, tune_file

from generate_test_audio import generate_sine_wave


class TestAnalyzeFile:
    """Tests for the analysis pass."""

    def test_a440(self, a440_file):
        frames = []
        report = analyze_file(a440_file, on_frame=lambda i, obs, label: frames.append(label))

        # 88200 frames / 8192 -> 10 full blocks and one padded block
        assert report.blocks == 11
        assert len(frames) == 11
        assert report.info.sample_rate == 44100
        assert report.info.channels == 1
        assert report.dominant.label == "A"
        assert report.tally.counts["A"] == 11

    def test_on_open_receives_info(self, stereo_g3_file):
        seen = []
        analyze_file(stereo_g3_file, on_open=seen.append)

        assert len(seen) == 1
        assert seen[0].channels == 2
        assert seen[0].frames == int(44100 * 1.5)

    def test_block_size(self, a440_file):
        report = analyze_file(a440_file, AnalysisConfig(n_fft=4096))
        assert report.blocks == 22
        assert report.dominant.label == "A"

    def test_empty_file(self, empty_file):
        report = analyze_file(empty_file)
        assert report.blocks == 0
        assert report.tally.is_empty
        assert report.dominant is None

    def test_each_file_gets_its_own_tally(self, a440_file, c4_file):
        first = analyze_file(a440_file)
        second = analyze_file(c4_file)

        assert first.tally is not second.tally
        assert second.tally.counts["A"] == 0
        assert second.dominant.label == "C"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileOpenError):
            analyze_file(str(tmp_path / "missing.wav"))

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "notes.xyz"
        path.write_bytes(b"not audio")
        with pytest.raises(UnsupportedFormatError):
            analyze_file(str(path))

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "broken.wav"
        path.write_bytes(b"RIFF0000garbage")
        with pytest.raises(FileOpenError):
            analyze_file(str(path))


class TestRun:
    """Tests for the full analyse-and-tune run."""

    def test_a440_retuned_to_c(self, a440_file, tmp_path):
        result = run(a440_file)

        assert result.semitones == 3
        assert not result.already_tuned
        assert result.tuned.output_path == tmp_path / "tuned_A.wav"

        info = sf.info(str(result.tuned.output_path))
        assert info.samplerate == 44100
        assert info.channels == 1
        assert info.subtype == "FLOAT"
        assert info.frames == result.tuned.frames_written
        assert abs(info.frames - result.tuned.frames_in) <= 4096

        assert analyze_file(str(result.tuned.output_path)).dominant.label == "C"

    def test_other_target(self, a440_file, tmp_path):
        output = tmp_path / "out" / "a_to_g.wav"
        result = run(a440_file, target="G", output_path=str(output))

        assert result.semitones == -2
        assert output.is_file()
        assert analyze_file(str(output)).dominant.label == "G"

    def test_already_at_target_writes_nothing(self, c4_file, tmp_path):
        decisions = []
        result = run(c4_file, on_decision=lambda report, st: decisions.append(st))

        assert decisions == [0]
        assert result.already_tuned
        assert not (tmp_path / "tuned_C.wav").exists()

    def test_force_writes_copy(self, c4_file, tmp_path):
        result = run(c4_file, force=True)

        assert result.semitones == 0
        assert (tmp_path / "tuned_C.wav").is_file()

    def test_stereo_keeps_channels(self, stereo_g3_file, tmp_path):
        result = run(stereo_g3_file)

        assert result.report.dominant.label == "G"
        assert result.semitones == 5
        with AudioSource(str(result.tuned.output_path)) as source:
            assert source.channels == 2
            audio = source.read_all()

        rms = np.sqrt(np.mean(audio[4096:-4096] ** 2, axis=0))
        assert rms[1] == pytest.approx(0.5 * rms[0], rel=0.05)

    def test_empty_file(self, empty_file):
        with pytest.raises(EmptyAudioError):
            run(empty_file)

    def test_silent_file(self, silence_file, tmp_path):
        with pytest.raises(EmptyAudioError):
            run(silence_file)
        assert list(tmp_path.glob("tuned_*.wav")) == []


class TestTuneFile:
    def test_returns_trim_point(self, write_wav, tmp_path):
        path = write_wav("e4.wav", generate_sine_wave(329.63, 1.0))
        result = tune_file(path, -4, str(tmp_path / "e_to_c.wav"))

        assert result.frames_in == 44100
        assert result.trim_point >= 3072
        assert result.frames_written > 0

    def test_empty_file(self, empty_file, tmp_path):
        with pytest.raises(EmptyAudioError):
            tune_file(empty_file, 3, str(tmp_path / "out.wav"))
        assert not (tmp_path / "out.wav").exists()


def test_output_path_for(tmp_path):
    assert output_path_for("F#", tmp_path) == tmp_path / "tuned_F#.wav"


class TestAudioIO:
    """Short reads/writes and unwritable destinations."""

    def test_short_read_warns_and_continues(self, a440_file, monkeypatch):
        read = sf.SoundFile.read

        def short_read(self, frames=-1, **kwargs):
            return read(self, frames, **kwargs)[:-1]

        monkeypatch.setattr(sf.SoundFile, "read", short_read)

        with AudioSource(a440_file) as source:
            with pytest.warns(PartialIOError):
                block = source.read_frames(1000)
        assert len(block) == 999

    def test_short_write_warns_and_continues(self, a440_file, tmp_path, monkeypatch):
        write_frames = AudioSink.write_frames
        monkeypatch.setattr(
            AudioSink, "write_frames", lambda self, data: write_frames(self, data) - 1
        )

        with pytest.warns(PartialIOError):
            result = tune_file(a440_file, 3, str(tmp_path / "short.wav"))
        assert (tmp_path / "short.wav").is_file()
        assert result.frames_written == sf.info(str(tmp_path / "short.wav")).frames - 1

    def test_sink_under_regular_file(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x")

        with pytest.raises(FileOpenError):
            AudioSink(str(blocker / "out.wav"), 44100, 1)

    def test_run_with_unwritable_output(self, a440_file, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x")

        with pytest.raises(FileOpenError):
            run(a440_file, output_path=str(blocker / "out.wav"))

    def test_sink_reports_frames_written(self, tmp_path):
        with AudioSink(str(tmp_path / "out.wav"), 44100, 2) as sink:
            assert sink.write_frames(np.zeros((100, 2), dtype=np.float32)) == 100
            assert sink.write_frames(np.zeros((50, 2), dtype=np.float32)) == 50
        assert sf.info(str(tmp_path / "out.wav")).frames == 150

    @pytest.mark.parametrize("suffix,fmt", [(".aif", "AIFF"), (".wave", "WAV")])
    def test_extension_aliases(self, tmp_path, suffix, fmt):
        path = tmp_path / f"tone{suffix}"
        sf.write(str(path), generate_sine_wave(440.0, 0.5), 44100, format=fmt, subtype="FLOAT")

        report = analyze_file(str(path))
        assert report.dominant.label == "A"
