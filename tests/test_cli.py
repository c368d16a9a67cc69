from PIL import Image

import dwq.decoder
from dwq import DwqDecoder
from dwq.cli import collect_dwq_files, decode_dwq_file, decode_dwq_files, main

from conftest import make_dwq, make_header, make_packed_bitmap


def _write_packed(path, gray_palette):
    payload = make_packed_bitmap(2, 1, 24, [bytes((1, 2, 3, 4, 5, 6))])
    mask = make_packed_bitmap(2, 1, 8, [b'\x01\x02'], palette=gray_palette)
    path.write_bytes(make_dwq('PACKTYPE=3A', 2, 1, payload, mask))


def test_decode_dwq_file(tmp_path, gray_palette, capsys):
    src = tmp_path / 'ev01.dwq'
    _write_packed(src, gray_palette)
    out_dir = tmp_path / 'out'

    out = decode_dwq_file(str(src), output_dir=str(out_dir))

    assert out == str(out_dir / 'ev01.png')
    assert '[OK] Decoded ev01.dwq -> ev01.png' in capsys.readouterr().out
    with Image.open(out) as img:
        assert img.mode == 'RGBA'
        assert img.getpixel((0, 0)) == (3, 2, 1, 255)
        assert img.getpixel((1, 0)) == (6, 5, 4, 60)


def test_decode_dwq_file_skips_other_formats(tmp_path, capsys):
    src = tmp_path / 'readme.dwq'
    src.write_bytes(b'hello')
    assert decode_dwq_file(str(src), output_dir=str(tmp_path / 'out')) == ""
    assert '[SKIP] Not a DWQ image: readme.dwq' in capsys.readouterr().out


def test_decode_dwq_file_reports_errors(tmp_path, capsys):
    src = tmp_path / 'bad.dwq'
    src.write_bytes(make_header('PACKTYPE=42', 1, 1))
    assert decode_dwq_file(str(src), output_dir=str(tmp_path / 'out')) == ""
    assert '[ERROR] Decode failed (bad.dwq): Unsupported DWQ pack type: 42' in capsys.readouterr().out


def test_decode_dwq_files(tmp_path, gray_palette, capsys):
    good = tmp_path / 'a.dwq'
    bad = tmp_path / 'b.dwq'
    _write_packed(good, gray_palette)
    bad.write_bytes(b'junk')

    outputs = decode_dwq_files([str(good), str(bad)], output_dir=str(tmp_path / 'out'))

    assert len(outputs) == 1
    assert '[OK] Decoded 1/2 files' in capsys.readouterr().out


def test_decode_dwq_files_empty(capsys):
    assert decode_dwq_files([]) == []
    assert 'No DWQ files to decode.' in capsys.readouterr().out


def test_collect_dwq_files(tmp_path):
    (tmp_path / 'b.DWQ').write_bytes(b'')
    (tmp_path / 'a.dwq').write_bytes(b'')
    (tmp_path / 'notes.txt').write_bytes(b'')
    extra = tmp_path / 'extra.bin'
    files = collect_dwq_files([str(tmp_path), str(extra)])
    assert files == [str(tmp_path / 'a.dwq'), str(tmp_path / 'b.DWQ'), str(extra)]


def test_main(tmp_path, gray_palette):
    src_dir = tmp_path / 'cg'
    src_dir.mkdir()
    _write_packed(src_dir / 'cg01.dwq', gray_palette)
    out_dir = tmp_path / 'png'

    assert main([str(src_dir), '-o', str(out_dir)]) == 0
    assert (out_dir / 'cg01.png').exists()


def test_main_failure_exit_code(tmp_path):
    src = tmp_path / 'x.dwq'
    src.write_bytes(b'x')
    assert main([str(src), '-o', str(tmp_path / 'out')]) == 1


def _exploding_png(fp, info):
    raise Image.DecompressionBombError("image too large")


def test_decode_dwq_file_reports_unexpected_errors(tmp_path, capsys):
    src = tmp_path / 'huge.dwq'
    src.write_bytes(make_dwq('PACKTYPE=8', 1, 1, b'png'))
    decoder = DwqDecoder(codecs={'PNG': _exploding_png})

    assert decode_dwq_file(str(src), output_dir=str(tmp_path / 'out'), decoder=decoder) == ""
    assert '[ERROR] Decode failed (huge.dwq): image too large' in capsys.readouterr().out


def test_decode_dwq_files_continues_after_unexpected_error(tmp_path, gray_palette, monkeypatch):
    huge = tmp_path / 'a.dwq'
    huge.write_bytes(make_dwq('PACKTYPE=8', 1, 1, b'png'))
    good = tmp_path / 'b.dwq'
    _write_packed(good, gray_palette)
    monkeypatch.setattr(dwq.decoder, 'default_codecs', lambda: {'PNG': _exploding_png})

    outputs = decode_dwq_files([str(huge), str(good)], output_dir=str(tmp_path / 'out'))

    assert outputs == [str(tmp_path / 'out' / 'b.png')]
