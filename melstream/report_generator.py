import csv


class ReportGenerator:
    def __init__(self, records):
        self.records = records

    def export_csv(self, filepath):
        with open(filepath, mode='w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(["Segment", "Start Frame", "End Frame", "Start Time",
                             "Duration (s)", "Text"])
            for i, r in enumerate(self.records):
                duration = r.end_time - r.start_time
                writer.writerow([i + 1, r.index, r.end_index, r.time,
                                 f"{duration:.2f}", r.text or ""])

    def _build_text(self):
        transcribed = [r for r in self.records if r.text]
        total_speech = sum(r.end_time - r.start_time for r in self.records)

        lines = []
        lines.append("=" * 55)
        lines.append("      SEGMENTATION SUMMARY")
        lines.append("=" * 55)
        lines.append(f"Segments Emitted     : {len(self.records)}")
        lines.append(f"Segments Transcribed : {len(transcribed)}")
        lines.append(f"Total Speech         : {total_speech:.2f}s")
        if self.records:
            durations = [r.end_time - r.start_time for r in self.records]
            lines.append(f"Longest Segment      : {max(durations):.2f}s")
            lines.append(f"Shortest Segment     : {min(durations):.2f}s")
        lines.append("=" * 55)
        return "\n".join(lines)

    def print_console(self, file=None):
        print("\n" + self._build_text() + "\n", file=file)
